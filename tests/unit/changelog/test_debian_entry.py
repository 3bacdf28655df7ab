from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sil_buildtasks.changelog import (
    DebianEntry,
    debian_date,
    generate_debian_entry,
    prepend_debian_entry,
)

MAINTAINER = "Steve McConnel <stephen_mcconnel@example.com>"
FIXED_DATE = datetime(2015, 10, 15, 8, 25, 16, tzinfo=timezone(timedelta(hours=-5)))

KEEP_A_CHANGELOG = """# Change Log

All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](http://keepachangelog.com/)
and this project adheres to [Semantic Versioning](http://semver.org/).

<!-- Available types of changes:
### Added
### Changed
### Fixed
### Deprecated
### Removed
### Security
-->

## [Unreleased]

## [2.3.11] - 2020-12-05

### Changed
- This to that.

### Fixed
- Unplanned bugs.

## [1.2.3] - 2020-12-01

### Added
- New features.

### Fixed
- All bugs."""


def _entry(**overrides: object) -> DebianEntry:
    values: dict[str, object] = {
        "package": "myfavoriteapp",
        "version": "2.3.11",
        "distribution": "unstable",
        "maintainer": MAINTAINER,
        "date": FIXED_DATE,
    }
    values.update(overrides)
    return DebianEntry(**values)  # type: ignore[arg-type]


def test_debian_date_is_rfc_2822() -> None:
    assert debian_date(FIXED_DATE) == "Thu, 15 Oct 2015 08:25:16 -0500"


def test_debian_date_of_naive_time_has_numeric_offset() -> None:
    rendered = debian_date(datetime(2020, 1, 2, 3, 4, 5))

    assert re.fullmatch(r"Thu, 02 Jan 2020 03:04:05 [+-]\d{4}", rendered)


def test_legacy_heading_entries_become_bullets() -> None:
    lines = ["## 2.3.10: 4/Sep/2014", "* with some random content", "* does some things"]

    stanza = generate_debian_entry(lines, _entry())

    assert stanza == [
        "myfavoriteapp (2.3.11) unstable; urgency=low",
        "",
        "  * with some random content",
        "  * does some things",
        "",
        f" -- {MAINTAINER}  Thu, 15 Oct 2015 08:25:16 -0500",
        "",
    ]


def test_keep_a_changelog_categories_become_first_level_items() -> None:
    stanza = generate_debian_entry(KEEP_A_CHANGELOG.splitlines(), _entry())

    assert stanza == [
        "myfavoriteapp (2.3.11) unstable; urgency=low",
        "",
        "  * Changed",
        "    * This to that",
        "",
        "  * Fixed",
        "    * Unplanned bugs",
        "",
        f" -- {MAINTAINER}  Thu, 15 Oct 2015 08:25:16 -0500",
        "",
    ]


def test_list_levels_map_to_two_bullet_depths() -> None:
    lines = [
        "## 3.0.97 Beta",
        "- Update French UI Translation",
        "+ When importing, Bloom no longer",
        "  1. makes images transparent when importing.",
        "  4. compresses images transparent when importing.",
        "  9. saves copyright/license back to the original files",
        "    * extra indented list",
        "* Fix insertion of unwanted space before bolded portions of words",
    ]

    stanza = generate_debian_entry(lines, _entry(version="3.0.97 Beta"))

    assert "3.0.97 Beta" in stanza[0]
    assert stanza[2].startswith("  *")
    assert stanza[3].startswith("  *")
    for line in stanza[4:8]:
        assert line.startswith("    *")
    assert stanza[8].startswith("  *")
    assert stanza[4] == "    * makes images transparent when importing"


def test_default_header_values() -> None:
    entry = DebianEntry(package="pkg", version="1.0", date=FIXED_DATE)

    stanza = generate_debian_entry(["## 1.0", "- one"], entry)

    assert stanza[0] == "pkg (1.0) UNRELEASED; urgency=low"
    assert stanza[-2].startswith(" -- Anonymous <anonymous@example.com>  ")


def test_prepend_keeps_existing_stanzas(tmp_path: Path) -> None:
    changelog = tmp_path / "CHANGELOG.md"
    changelog.write_text(
        "\n".join(["## 2.3.10: 4/Sep/2014", "* with some random content", "* does some things"])
        + "\n",
        encoding="utf-8",
    )
    debian_changelog = tmp_path / "debian" / "changelog"
    debian_changelog.parent.mkdir()
    old_stanza = [
        "myfavoriteapp (2.1.0~alpha1) unstable; urgency=low",
        "",
        "  * Initial Release for Linux.",
        "",
        " -- Stephen McConnel <stephen_mcconnel@example.com>  Fri, 12 Jul 2013 14:57:59 -0500",
        "",
    ]
    debian_changelog.write_text("\n".join(old_stanza) + "\n", encoding="utf-8")

    stanza = prepend_debian_entry(changelog, debian_changelog, _entry())

    lines = debian_changelog.read_text(encoding="utf-8").splitlines()
    assert lines == [*stanza, *old_stanza]
    assert re.fullmatch(rf" -- {re.escape(MAINTAINER)}  .*[+-]\d{{4}}", lines[5])
    backup = debian_changelog.with_name("changelog.old")
    assert backup.read_text(encoding="utf-8").splitlines() == old_stanza


def test_prepend_creates_missing_debian_changelog(tmp_path: Path) -> None:
    changelog = tmp_path / "CHANGELOG.md"
    changelog.write_text("## 1.0\n- first\n", encoding="utf-8")
    debian_changelog = tmp_path / "debian" / "changelog"

    prepend_debian_entry(changelog, debian_changelog, _entry(version="1.0"))

    lines = debian_changelog.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "myfavoriteapp (1.0) unstable; urgency=low"
    assert lines[2] == "  * first"
    assert not debian_changelog.with_name("changelog.old").exists()
