"""Per-directory sidecar mapping installer component ids to stable GUIDs.

Windows Installer upgrades rely on a component keeping the same GUID for the
same file path, even though the fragment itself is regenerated on every build.
Each directory of the installed tree therefore carries a
``.guidsForInstaller.xml`` file that belongs in source control.
"""

from __future__ import annotations

import uuid
import xml.etree.ElementTree as ET
from pathlib import Path

from sil_buildtasks.logging import BuildLog

GUID_STORE_FILE_NAME = ".guidsForInstaller.xml"
ROOT_ELEMENT = "InstallerMetadata"
ENTRY_ELEMENT = "File"
HEADER_COMMENT = (
    "This file is generated and then updated by a build task.  It preserves the "
    "automatically-generated guids assigned files that will be installed on user "
    "machines. So it should be held in source control."
)


class GuidStoreFormatError(ValueError):
    """Raised when a GUID sidecar file does not have the expected shape."""

    def __init__(self, reason: str, path: Path) -> None:
        super().__init__(f"{reason} ({path})")
        self.reason = reason
        self.path = path


class GuidStore:
    """Durable id -> GUID mapping scoped to one directory."""

    def __init__(self, directory: Path, log: BuildLog | None = None) -> None:
        self._directory = directory
        self._path = directory / GUID_STORE_FILE_NAME
        self._log = log
        self._guids: dict[str, str] = {}

    @classmethod
    def load(cls, directory: Path, log: BuildLog | None = None) -> GuidStore:
        """Load the sidecar for ``directory``; an absent sidecar yields an empty store."""
        store = cls(directory, log)
        if not store.path.exists():
            return store
        try:
            root = ET.parse(store.path).getroot()
        except ET.ParseError as exc:
            raise GuidStoreFormatError(f"Unreadable GUID sidecar: {exc}", store.path) from exc
        if root.tag != ROOT_ELEMENT:
            raise GuidStoreFormatError(
                f"Expected <{ROOT_ELEMENT}> root element, found <{root.tag}>", store.path
            )
        if root.text is not None and root.text.strip():
            raise GuidStoreFormatError("Unexpected text content", store.path)
        for element in root:
            if element.tag != ENTRY_ELEMENT:
                raise GuidStoreFormatError(f"Unexpected element <{element.tag}>", store.path)
            component_id = element.get("Id")
            guid = element.get("Guid")
            if component_id is None or guid is None:
                raise GuidStoreFormatError(
                    f"<{ENTRY_ELEMENT}> requires both Id and Guid attributes", store.path
                )
            if len(element) or (element.tail is not None and element.tail.strip()):
                raise GuidStoreFormatError("Unexpected content", store.path)
            store._guids[component_id] = guid
        return store

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def path(self) -> Path:
        """Return the sidecar file path."""
        return self._path

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._guids

    def __len__(self) -> int:
        return len(self._guids)

    def entries(self) -> dict[str, str]:
        """Return a copy of the mapping in insertion order."""
        return dict(self._guids)

    def set(self, component_id: str, guid: str) -> None:
        """Record a known GUID without writing; used when recovering sidecars."""
        self._guids[component_id] = guid.upper()

    def get_or_create(self, component_id: str, just_check_dont_create: bool = False) -> str | None:
        """Return the upper-cased GUID for ``component_id``.

        A missing id is an error in check-only mode (``None`` is returned and
        nothing is written); otherwise a new GUID is minted and the sidecar is
        rewritten straight away.
        """
        guid = self._guids.get(component_id)
        if guid is not None:
            return guid.upper()

        if just_check_dont_create:
            if self._log is not None:
                self._log.error(f"No GUID for {component_id} in {self._path}")
            return None

        if self._log is not None:
            self._log.message(f"No GUID for {component_id} in {self._path}", importance="low")
        guid = str(uuid.uuid4()).upper()
        self._guids[component_id] = guid
        self.write()
        return guid

    def write(self) -> None:
        """Rewrite the whole sidecar file."""
        root = ET.Element(ROOT_ELEMENT)
        for component_id, guid in self._guids.items():
            ET.SubElement(root, ENTRY_ELEMENT, {"Id": component_id, "Guid": guid})
        ET.indent(root, space="  ")
        body = ET.tostring(root, encoding="unicode")
        text = (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            f"<!--{HEADER_COMMENT}-->\n"
            f"{body}\n"
        )
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(text, encoding="utf-8")
