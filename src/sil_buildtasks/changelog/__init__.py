"""Markdown changelog tooling: release notes, HTML pages, Debian stanzas and version stamps."""

from .debian import DebianEntry, debian_date, generate_debian_entry, prepend_debian_entry
from .markdown import (
    UNRELEASED_HEADING,
    ChangelogError,
    read_changelog_lines,
    strip_keep_a_changelog_head,
    write_changelog_lines,
)
from .release_notes import ReleaseNotesOptions, extract_latest_section, release_notes_from_file
from .release_notes_html import render_changelog_html, write_release_notes_html
from .stamp import stamp_changelog_file, stamp_version_heading

__all__ = [
    "ChangelogError",
    "DebianEntry",
    "ReleaseNotesOptions",
    "UNRELEASED_HEADING",
    "debian_date",
    "extract_latest_section",
    "generate_debian_entry",
    "prepend_debian_entry",
    "read_changelog_lines",
    "release_notes_from_file",
    "render_changelog_html",
    "stamp_changelog_file",
    "stamp_version_heading",
    "strip_keep_a_changelog_head",
    "write_changelog_lines",
    "write_release_notes_html",
]
