"""Relative path computation for installer ``Source`` attributes."""

from __future__ import annotations

import os
from pathlib import PurePath


def relative_path_to(
    from_directory: str | os.PathLike[str], to_path: str | os.PathLike[str]
) -> str:
    """Return the path of ``to_path`` relative to ``from_directory``.

    Segments are compared case-insensitively. Paths with no common leading
    segment, or rooted on different drives, come back unchanged.
    """
    source = PurePath(from_directory)
    target = PurePath(to_path)

    if source.is_absolute() and target.is_absolute():
        if source.anchor.lower() != target.anchor.lower():
            return str(target)

    from_parts = source.parts
    to_parts = target.parts
    last_common = -1
    for index in range(min(len(from_parts), len(to_parts))):
        if from_parts[index].lower() != to_parts[index].lower():
            break
        last_common = index

    if last_common == -1:
        return str(target)

    relative = [".."] * (len(from_parts) - last_common - 1)
    relative.extend(to_parts[last_common + 1 :])
    return os.sep.join(relative)
