"""Shared helpers for markdown changelog files."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

UNRELEASED_HEADING = "## [Unreleased]"


class ChangelogError(Exception):
    """Raised when a changelog cannot be read or yields nothing usable."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def strip_keep_a_changelog_head(lines: Sequence[str]) -> tuple[list[str], bool]:
    """Drop everything through ``## [Unreleased]`` and one following blank line.

    Returns the remaining lines and whether the marker was found.
    """
    for index, line in enumerate(lines):
        if line != UNRELEASED_HEADING:
            continue
        start = index + 1
        if start < len(lines) and not lines[start]:
            start += 1
        return list(lines[start:]), True
    return list(lines), False


def read_changelog_lines(path: Path) -> list[str]:
    """Read a changelog as a list of lines without line terminators."""
    if not path.is_file():
        raise ChangelogError(
            reason=f"The given changelog file ({path}) does not exist.",
            hint="Pass the path of an existing markdown changelog.",
        )
    return path.read_text(encoding="utf-8-sig").splitlines()


def write_changelog_lines(path: Path, lines: Sequence[str]) -> None:
    """Write lines back with a trailing newline."""
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
