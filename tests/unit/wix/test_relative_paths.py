from __future__ import annotations

import os
from pathlib import Path, PurePath

from sil_buildtasks.wix import relative_path_to


def test_sibling_directory_walks_up_then_down(tmp_path: Path) -> None:
    result = relative_path_to(tmp_path / "out", tmp_path / "payload" / "readme.txt")

    assert result == os.sep.join(["..", "payload", "readme.txt"])


def test_file_below_directory_has_no_parent_steps(tmp_path: Path) -> None:
    result = relative_path_to(tmp_path, tmp_path / "bin" / "app.exe")

    assert result == os.sep.join(["bin", "app.exe"])


def test_segments_compare_case_insensitively() -> None:
    result = relative_path_to(PurePath("Build", "Output"), PurePath("build", "output", "a.txt"))

    assert result == "a.txt"


def test_unrelated_relative_paths_are_returned_unchanged() -> None:
    target = PurePath("other", "file.txt")

    assert relative_path_to(PurePath("build"), target) == str(target)
