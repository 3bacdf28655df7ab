"""Extract the most recent release section of a markdown changelog.

The changelog is read as nested ``#`` heading sections. The parser walks the
lines once with a cursor, descending one heading level per recursion, and
produces a short plain-text summary suitable for package release notes::

    Changes since version 1.0

    Changed:
    - This is a unit test

When entry filtering is on, bullets tagged for another package
(``- [Other.Package] ...``) are dropped, the caller's own tag is removed, and
untagged bullets are kept for everyone.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from sil_buildtasks.changelog.markdown import ChangelogError, read_changelog_lines
from sil_buildtasks.config import DEFAULT_VERSION_REGEX

_URL_REFERENCE: Final[re.Pattern[str]] = re.compile(r"\[[^\]]+\]: (http|https|ftp|)://.+")
_TAGGED_ENTRY: Final[re.Pattern[str]] = re.compile(r"- \[([^\]]+)\]")
_COMMENT_CLOSE = "-->"


@dataclass(slots=True, frozen=True)
class ReleaseNotesOptions:
    """Settings for one release-notes extraction."""

    version_regex: str = DEFAULT_VERSION_REGEX
    filter_entries: bool = False
    package_id: str | None = None
    append_text: str | None = None


@dataclass(slots=True)
class _Cursor:
    """Read position shared by every recursion level of one parse."""

    lines: tuple[str, ...]
    index: int = 0

    @property
    def exhausted(self) -> bool:
        return self.index >= len(self.lines)

    @property
    def current(self) -> str:
        return self.lines[self.index]

    def finish(self) -> None:
        self.index = len(self.lines)


class _ReleaseNotesParser:
    def __init__(self, options: ReleaseNotesOptions) -> None:
        try:
            self._version = re.compile(options.version_regex)
        except re.error as exc:
            raise ChangelogError(
                reason=f"Invalid version regex {options.version_regex!r}: {exc}",
                hint="Pass a regular expression with one capturing group for the version.",
            ) from exc
        self._filter = options.filter_entries
        self._package_id = options.package_id or ""
        self._own_tag = f"- [{self._package_id}]"

    def convert(self, cursor: _Cursor, level: int, skip_until_level: int = -1) -> str:
        """Convert the section at ``level``; content above ``skip_until_level`` is not emitted."""
        output: list[str] = []
        level_header = "#" * level + " "
        parent_header = "#" * (level - 1) + " "

        while not cursor.exhausted:
            line = cursor.current
            if not line:
                cursor.index += 1
                continue

            if line.startswith("#"):
                if line.startswith(parent_header):
                    # The caller consumes this heading on its next step.
                    cursor.index -= 1
                    return "".join(output)

                if line.startswith(level_header):
                    if level >= skip_until_level:
                        self._emit_heading(cursor, line, level_header, output)
                        skip_until_level = -1
                    cursor.index += 1
                    output.append(self.convert(cursor, level + 1, skip_until_level))
                elif level > skip_until_level:
                    cursor.finish()
            elif _URL_REFERENCE.search(line):
                cursor.finish()
            elif level > skip_until_level:
                if self._filter:
                    self._emit_filtered_entry(cursor, output)
                else:
                    output.append(f"{line}\n")

            cursor.index += 1

        return "".join(output)

    def _emit_heading(
        self, cursor: _Cursor, line: str, level_header: str, output: list[str]
    ) -> None:
        if self._version.search(line):
            previous = self._previous_version(cursor, level_header)
            if previous:
                output.append(f"Changes since version {previous}\n\n")
            return

        header_text = line[len(level_header) :]
        if not header_text.endswith(":"):
            header_text += ":"
        if not self._should_print_header(cursor):
            return
        if any(output):
            output.append("\n")
        output.append(f"{header_text}\n")

    def _previous_version(self, cursor: _Cursor, level_header: str) -> str:
        """Find the next sibling version heading after the current one.

        A version heading that directly follows the current one (an empty
        ``[Unreleased]`` section) is the release being described, so the
        cursor moves onto it and the search continues past it.
        """
        non_empty = 0
        for index in range(cursor.index + 1, len(cursor.lines)):
            line = cursor.lines[index]
            if not line:
                continue
            non_empty += 1
            if not line.startswith(level_header):
                continue
            match = self._version.search(line)
            if match is None:
                continue
            if non_empty <= 1:
                cursor.index = index
                continue
            return match.group(1) or ""
        return ""

    def _should_print_header(self, cursor: _Cursor) -> bool:
        """Return False when filtering leaves a category section without entries."""
        if not self._filter:
            return True
        for line in cursor.lines[cursor.index + 1 :]:
            if not line or line.startswith("  "):
                continue
            if not line.startswith("-"):
                break
            if not _TAGGED_ENTRY.match(line) or line.startswith(self._own_tag):
                return True
        return False

    def _emit_filtered_entry(self, cursor: _Cursor, output: list[str]) -> None:
        line = cursor.current
        if _TAGGED_ENTRY.match(line):
            keep = line.startswith(self._own_tag)
            if keep:
                output.append(line.replace(f" [{self._package_id}]", "", 1) + "\n")
        elif line.startswith(_COMMENT_CLOSE):
            keep = False
        elif line.startswith("-"):
            keep = True
            output.append(f"{line}\n")
        else:
            return

        index = cursor.index + 1
        while index < len(cursor.lines) and _is_continuation(cursor.lines[index]):
            if keep:
                output.append(f"{cursor.lines[index]}\n")
            cursor.index = index
            index += 1


def _is_continuation(line: str) -> bool:
    return bool(line) and not line.startswith(("#", "-"))


def extract_latest_section(
    lines: Sequence[str], options: ReleaseNotesOptions | None = None
) -> str:
    """Return the formatted latest release section, or an empty string."""
    options = options or ReleaseNotesOptions()
    parser = _ReleaseNotesParser(options)
    text = parser.convert(_Cursor(lines=tuple(lines)), level=1, skip_until_level=2)
    if options.append_text:
        text += f"{options.append_text}\n"
    return text


def release_notes_from_file(path: Path, options: ReleaseNotesOptions | None = None) -> str:
    """Read ``path`` and extract its release notes; raise when none are found."""
    lines = read_changelog_lines(path)
    text = extract_latest_section(lines, options)
    if not text:
        raise ChangelogError(
            reason=f"Can't find release in {path}",
            hint="Add a '## [version]' or '## [Unreleased]' section with entries.",
        )
    return text
