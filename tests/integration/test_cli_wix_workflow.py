from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from sil_buildtasks.cli import main
from sil_buildtasks.wix import GUID_STORE_FILE_NAME, WIX_NAMESPACE


def _make_tree(root: Path) -> None:
    (root / "docs").mkdir(parents=True)
    (root / "app.exe").write_text("binary", encoding="utf-8")
    (root / "docs" / "guide.txt").write_text("guide", encoding="utf-8")


def test_wix_command_generates_fragment(tmp_path: Path) -> None:
    root = tmp_path / "payload"
    output = tmp_path / "files.wxs"
    _make_tree(root)

    code = main(["--project-root", str(tmp_path), "wix", str(root), str(output)])

    assert code == 0
    refs = [
        item.get("Id")
        for item in ET.parse(output).getroot().iter(f"{{{WIX_NAMESPACE}}}ComponentRef")
    ]
    assert refs == ["INSTALLDIR.app.exe", "INSTALLDIR.docs.guide.txt"]


def test_wix_check_only_fails_for_new_files(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = tmp_path / "payload"
    output = tmp_path / "files.wxs"
    _make_tree(root)

    code = main(["--project-root", str(tmp_path), "wix", str(root), str(output), "--check-only"])

    assert code == 1
    assert capsys.readouterr().err.count("error: No GUID for") == 2
    assert not output.exists()


def test_wix_options_from_config_file_and_cli(tmp_path: Path) -> None:
    root = tmp_path / "payload"
    output = tmp_path / "files.wxs"
    _make_tree(root)
    (tmp_path / "buildtasks.toml").write_text(
        '[wix]\ncomponent_group_id = "Payload"\n', encoding="utf-8"
    )

    code = main(
        [
            "--project-root",
            str(tmp_path),
            "wix",
            str(root),
            str(output),
            "--exclude",
            str(root / "docs"),
            "--directory-ref-id",
            "APPDIR",
        ]
    )

    assert code == 0
    document = ET.parse(output).getroot()
    group = document.find(f".//{{{WIX_NAMESPACE}}}ComponentGroup")
    assert group is not None
    assert group.get("Id") == "Payload"
    refs = [item.get("Id") for item in group]
    assert refs == ["APPDIR.app.exe"]


def test_recreate_guids_restores_sidecars(tmp_path: Path) -> None:
    root = tmp_path / "payload"
    output = tmp_path / "files.wxs"
    _make_tree(root)
    assert main(["--project-root", str(tmp_path), "wix", str(root), str(output)]) == 0
    original = (root / GUID_STORE_FILE_NAME).read_text(encoding="utf-8")
    (root / GUID_STORE_FILE_NAME).unlink()
    (root / "docs" / GUID_STORE_FILE_NAME).unlink()

    code = main(["--project-root", str(tmp_path), "recreate-guids", str(output)])

    assert code == 0
    assert (root / GUID_STORE_FILE_NAME).read_text(encoding="utf-8") == original
    assert (root / "docs" / GUID_STORE_FILE_NAME).exists()


def test_missing_root_exits_with_failure(tmp_path: Path) -> None:
    code = main(
        ["--project-root", str(tmp_path), "wix", str(tmp_path / "nope"), str(tmp_path / "o.wxs")]
    )

    assert code == 1


def test_log_file_records_events(tmp_path: Path) -> None:
    root = tmp_path / "payload"
    _make_tree(root)
    log_file = tmp_path / "logs" / "events.jsonl"

    main(
        [
            "--project-root",
            str(tmp_path),
            "--log-file",
            str(log_file),
            "wix",
            str(root),
            str(tmp_path / "files.wxs"),
        ]
    )

    events = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert events
    assert {event["task"] for event in events} == {"wix"}
    assert any("Creating Wix fragment" in event["message"] for event in events)


def test_config_command_prints_effective_config(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = main(["--project-root", str(tmp_path), "config"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["wix"]["directory_reference_id"] == "INSTALLDIR"
    assert payload["debian"]["distribution"] == "UNRELEASED"


def test_invalid_config_is_reported_not_raised(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "buildtasks.toml").write_text('wix = "oops"\n', encoding="utf-8")

    code = main(["--project-root", str(tmp_path), "config"])

    assert code == 1
    assert "section 'wix' must be a table" in capsys.readouterr().err


def test_missing_command_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([])

    assert excinfo.value.code == 2
