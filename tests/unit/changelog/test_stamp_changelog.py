from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from sil_buildtasks.changelog import ChangelogError, stamp_changelog_file, stamp_version_heading

RELEASE_DAY = date(2024, 3, 9)


def test_legacy_placeholder_heading_is_replaced() -> None:
    lines = ["## DEV_VERSION_NUMBER: DEV_RELEASE_DATE", "*with some random content"]

    stamped = stamp_version_heading(lines, "2.3.10", RELEASE_DAY, "%d/%b/%Y")

    assert stamped == ["## 2.3.10 09/Mar/2024", "*with some random content"]


def test_unreleased_marker_stays_and_gets_release_below() -> None:
    lines = ["# Change Log", "", "## [Unreleased]", "", "### Fixed", "- a bug"]

    stamped = stamp_version_heading(lines, "1.2.0", RELEASE_DAY)

    assert stamped == [
        "# Change Log",
        "",
        "## [Unreleased]",
        "",
        "## [1.2.0] - 2024-03-09",
        "",
        "### Fixed",
        "- a bug",
    ]
    assert lines[2] == "## [Unreleased]"
    assert len(lines) == 6


def test_empty_changelog_raises() -> None:
    with pytest.raises(ChangelogError, match="empty changelog"):
        stamp_version_heading([], "1.0", RELEASE_DAY)


def test_stamp_file_rewrites_in_place(tmp_path: Path) -> None:
    changelog = tmp_path / "CHANGELOG.md"
    changelog.write_text(
        "## DEV_VERSION_NUMBER: DEV_RELEASE_DATE\n*with some random content\n*does some things\n",
        encoding="utf-8",
    )

    stamp_changelog_file(changelog, "2.3.10", today=RELEASE_DAY)

    lines = changelog.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert lines[0] == "## 2.3.10 2024-03-09"


def test_stamp_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ChangelogError, match="does not exist"):
        stamp_changelog_file(tmp_path / "missing.md", "1.0")
