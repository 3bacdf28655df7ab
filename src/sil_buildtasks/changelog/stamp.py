"""Replace the development placeholder heading with a dated release heading."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from pathlib import Path

from sil_buildtasks.changelog.markdown import (
    UNRELEASED_HEADING,
    ChangelogError,
    read_changelog_lines,
    write_changelog_lines,
)
from sil_buildtasks.config import DEFAULT_DATE_FORMAT


def stamp_version_heading(
    lines: Sequence[str],
    version: str,
    day: date,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> list[str]:
    """Return ``lines`` with a heading for ``version`` released on ``day``.

    Keep a Changelog files get ``## [version] - date`` inserted below the
    ``## [Unreleased]`` marker, which stays in place. Any other file has its
    first line replaced by ``## version date``.
    """
    if not lines:
        raise ChangelogError(
            reason="Cannot stamp an empty changelog.",
            hint="Add a '## [Unreleased]' or placeholder heading as the first line.",
        )
    stamped = list(lines)
    stamp = day.strftime(date_format)
    if UNRELEASED_HEADING in stamped:
        position = stamped.index(UNRELEASED_HEADING) + 1
        stamped[position:position] = ["", f"## [{version}] - {stamp}"]
    else:
        stamped[0] = f"## {version} {stamp}"
    return stamped


def stamp_changelog_file(
    path: Path,
    version: str,
    date_format: str = DEFAULT_DATE_FORMAT,
    today: date | None = None,
) -> list[str]:
    """Stamp ``path`` in place and return the new lines."""
    stamped = stamp_version_heading(
        read_changelog_lines(path), version, today or date.today(), date_format
    )
    write_changelog_lines(path, stamped)
    return stamped
