"""Turn the newest markdown changelog section into a Debian changelog stanza."""

from __future__ import annotations

import email.utils
import os
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from sil_buildtasks.changelog.markdown import (
    read_changelog_lines,
    strip_keep_a_changelog_head,
    write_changelog_lines,
)
from sil_buildtasks.config import DEFAULT_DISTRIBUTION, DEFAULT_MAINTAINER, DEFAULT_URGENCY

_FIRST_LEVEL_MARKERS = frozenset("*-+0123456789")


@dataclass(slots=True, frozen=True)
class DebianEntry:
    """Header and trailer values for one Debian changelog stanza."""

    package: str
    version: str
    distribution: str = DEFAULT_DISTRIBUTION
    urgency: str = DEFAULT_URGENCY
    maintainer: str = DEFAULT_MAINTAINER
    date: datetime | None = None


def debian_date(moment: datetime) -> str:
    """Format ``moment`` as RFC 2822, e.g. ``Thu, 15 Oct 2015 08:25:16 -0500``."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return email.utils.format_datetime(moment)


def generate_debian_entry(markdown_lines: Sequence[str], entry: DebianEntry) -> list[str]:
    """Build the stanza lines for the newest section of ``markdown_lines``.

    The first line is taken to be the version heading. For Keep a Changelog
    files the developer preamble is dropped and ``### Category`` headings
    become first-level bullets with their entries nested below them.
    """
    lines, found = strip_keep_a_changelog_head(markdown_lines)
    if found:
        lines = _flatten_categories(lines)

    stanza = [
        f"{entry.package} ({entry.version}) {entry.distribution}; urgency={entry.urgency}",
        "",
    ]
    start = 1
    if start < len(lines) and not lines[start]:
        start += 1
    for line in lines[start:]:
        if line.startswith("##"):
            break
        converted = _convert_line(line)
        if converted is not None:
            stanza.append(converted)

    if stanza[-1]:
        stanza.append("")
    moment = entry.date or datetime.now().astimezone()
    stanza.append(f" -- {entry.maintainer}  {debian_date(moment)}")
    stanza.append("")
    return stanza


def prepend_debian_entry(
    changelog_path: Path, debian_changelog_path: Path, entry: DebianEntry
) -> list[str]:
    """Write a new stanza at the top of ``debian_changelog_path``; return the stanza.

    An existing Debian changelog is first moved aside with an ``.old``
    extension (``changelog`` becomes ``changelog.old``), replacing any earlier
    backup.
    """
    stanza = generate_debian_entry(read_changelog_lines(changelog_path), entry)
    existing: list[str] = []
    if debian_changelog_path.is_file():
        backup = debian_changelog_path.with_suffix(".old")
        os.replace(debian_changelog_path, backup)
        existing = backup.read_text(encoding="utf-8").splitlines()
    debian_changelog_path.parent.mkdir(parents=True, exist_ok=True)
    write_changelog_lines(debian_changelog_path, [*stanza, *existing])
    return stanza


def _flatten_categories(lines: Sequence[str]) -> list[str]:
    flattened: list[str] = []
    for line in lines:
        if line.startswith("### "):
            flattened.append(f"- {line[4:]}")
        elif line and not line.startswith("#"):
            flattened.append(f"  {line}")
        else:
            flattened.append(line)
    return flattened


def _convert_line(line: str) -> str | None:
    if not line:
        return ""
    if line[0] in _FIRST_LEVEL_MARKERS:
        return f"  *{line[1:]}"
    if line[0] == " ":
        # Deeper nesting is folded into the second level.
        return f"    *{line.strip()[1:].strip('.')}"
    return None
