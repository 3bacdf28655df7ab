"""Rebuild GUID sidecar files from a previously generated fragment."""

from __future__ import annotations

import posixpath
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from sil_buildtasks.logging import BuildLog
from sil_buildtasks.wix.guid_store import GuidStore, GuidStoreFormatError

_CONTAINER_ELEMENTS = frozenset(
    {"Wix", "Fragment", "Directory", "DirectoryRef", "ComponentGroup", "ComponentRef"}
)


@dataclass(slots=True)
class _PendingFolder:
    """Directory-permission components waiting for a sibling file to locate them."""

    components: list[tuple[str, str]] = field(default_factory=list)
    directory: str | None = None


def recreate_guid_stores(wxs_path: Path, log: BuildLog) -> list[Path]:
    """Write one sidecar per directory referenced by the fragment's components.

    ``File/@Source`` values are resolved relative to the fragment's own
    directory, which is how the builder writes them by default.
    """
    try:
        root = ET.parse(wxs_path).getroot()
    except ET.ParseError as exc:
        raise GuidStoreFormatError(f"Unreadable fragment: {exc}", wxs_path) from exc
    if _local_name(root.tag) != "Wix":
        raise GuidStoreFormatError(
            f"Invalid root element {_local_name(root.tag)}, expected <Wix>", wxs_path
        )

    base_dir = wxs_path.resolve().parent
    databases: dict[str, dict[str, str]] = {}
    _collect(root, wxs_path, databases, log)

    written: list[Path] = []
    for directory, guids in databases.items():
        store = GuidStore(base_dir / directory)
        for component_id, guid in guids.items():
            store.set(component_id, guid)
        log.message(f"Writing {store.path}")
        store.write()
        written.append(store.path)
    return written


def _collect(
    element: ET.Element,
    wxs_path: Path,
    databases: dict[str, dict[str, str]],
    log: BuildLog,
) -> None:
    pending = _PendingFolder()
    for child in element:
        name = _local_name(child.tag)
        if name in _CONTAINER_ELEMENTS:
            _collect(child, wxs_path, databases, log)
            continue
        if name != "Component":
            raise GuidStoreFormatError(f"Unknown element {name}", wxs_path)

        component_id = child.get("Id")
        guid = child.get("Guid")
        if component_id is None or guid is None:
            log.warning(f"Skipping component {component_id or '?'} without Id or Guid")
            continue
        first = next(iter(child), None)
        first_name = _local_name(first.tag) if first is not None else None
        if first_name == "CreateFolder":
            pending.components.append((component_id, guid))
            continue
        if first is None or first_name != "File":
            raise GuidStoreFormatError(
                f"Unexpected XML node {first_name}; expected <File>", wxs_path
            )
        source = first.get("Source")
        if source is None:
            raise GuidStoreFormatError(f"<File> of {component_id} has no Source", wxs_path)
        directory = _source_directory(source)
        databases.setdefault(directory, {})[component_id] = guid
        if pending.directory is None:
            pending.directory = directory

    if not pending.components:
        return
    if pending.directory is None:
        for component_id, _ in pending.components:
            log.warning(f"Cannot locate directory for component {component_id}; skipped")
        return
    database = databases.setdefault(pending.directory, {})
    for component_id, guid in pending.components:
        database[component_id] = guid


def _source_directory(source: str) -> str:
    return posixpath.dirname(source.replace("\\", "/"))


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]
