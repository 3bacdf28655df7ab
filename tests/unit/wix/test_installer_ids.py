from __future__ import annotations

import re

from sil_buildtasks.wix import MAX_FILE_ID_LENGTH, IdAllocator, directory_id, file_id, sanitize_id


def test_sanitize_replaces_everything_outside_safe_charset() -> None:
    sanitized = sanitize_id("a-b c+d.e_f1(!)")

    assert sanitized == "a_b_c_d.e_f1___"
    assert re.fullmatch(r"[A-Za-z0-9._]+", sanitized)


def test_directory_id_joins_parent_and_name() -> None:
    assert directory_id("INSTALLDIR", "my dir") == "INSTALLDIR.my_dir"
    assert directory_id("INSTALLDIR") == "INSTALLDIR"
    assert directory_id("A", "sub") != directory_id("B", "sub")


def test_file_id_depends_on_parent_and_name() -> None:
    assert file_id("INSTALLDIR.bin", "app.exe") == "INSTALLDIR.bin.app.exe"
    assert file_id("INSTALLDIR.bin", "app.exe") != file_id("INSTALLDIR.lib", "app.exe")


def test_long_file_id_keeps_trailing_characters() -> None:
    parent = "INSTALLDIR." + "a" * 60

    result = file_id(parent, "file.txt")

    assert len(result) == MAX_FILE_ID_LENGTH
    assert result == "a" * 41 + ".file.txt"


def test_file_id_must_start_with_letter_or_underscore() -> None:
    assert file_id("1dir", "a") == "_1dir.a"

    truncated = file_id("D." + "1" * 60, "x.txt")

    assert truncated == "_" + "1" * 44 + ".x.txt"


def test_allocator_disambiguates_case_insensitively() -> None:
    allocator = IdAllocator()

    assert allocator.allocate("A.txt") == "A.txt"
    assert allocator.allocate("a.TXT") == "a.TXT1"
    assert allocator.allocate("A.txt") == "A.txt2"
    assert allocator.allocate("B.txt") == "B.txt"
