"""Walk a directory tree and emit a WiX fragment with stable component GUIDs.

Every directory visited keeps a GUID sidecar (see ``guid_store``) so that the
same file path is installed by the same component GUID on every build. The
fragment is rebuilt from scratch each run and only written when something
installable changed.
"""

from __future__ import annotations

import os
import re
import uuid
import xml.etree.ElementTree as ET
from pathlib import Path

from sil_buildtasks.config import WixConfig
from sil_buildtasks.logging import BuildLog
from sil_buildtasks.wix.guid_store import GUID_STORE_FILE_NAME, GuidStore
from sil_buildtasks.wix.ids import IdAllocator, directory_id, file_id
from sil_buildtasks.wix.models import (
    WIX_NAMESPACE,
    ComponentNode,
    DirectoryNode,
    FileNode,
    FragmentDocument,
)
from sil_buildtasks.wix.paths import relative_path_to

VCS_DIRECTORY_NAMES = frozenset({".svn", "CVS", ".git", ".hg"})

ET.register_namespace("", WIX_NAMESPACE)

FragmentSignature = tuple[str, tuple[tuple[str, str], ...], tuple["FragmentSignature", ...]]


class FragmentBuilder:
    """Builds one fragment; construct a fresh instance per invocation."""

    def __init__(
        self,
        root_directory: Path,
        output_path: Path,
        config: WixConfig,
        log: BuildLog,
    ) -> None:
        self._root = Path(os.path.abspath(root_directory))
        self._output_path = Path(os.path.abspath(output_path))
        self._config = config
        self._log = log
        self._match = re.compile(config.match_pattern, re.IGNORECASE)
        self._ignore = re.compile(config.ignore_pattern, re.IGNORECASE)
        self._source_base = (
            Path(os.path.abspath(config.installer_source_directory))
            if config.installer_source_directory
            else self._output_path.parent
        )
        self._excluded = self._build_exclusions(config.exclude)
        self._components: list[str] = []
        self._ids = IdAllocator()
        self._reference_mtime: float | None = None
        self._files_changed = False

    @property
    def files_changed(self) -> bool:
        return self._files_changed

    @property
    def output_path(self) -> Path:
        return self._output_path

    def execute(self) -> bool:
        """Generate the fragment; return False when any error was logged."""
        errors_before = self._log.error_count
        if not self._root.is_dir():
            self._log.error(f"Directory not found: {self._root}")
            self._remove_stale_output()
            return False

        self._log.message(f"Creating Wix fragment for {self._root}", importance="high")
        previous_signature = self._read_previous_state()
        try:
            document = self.build()
            if (
                previous_signature is not None
                and previous_signature != fragment_signature(render_fragment(document))
            ):
                self._files_changed = True
            self._write_if_changed(document)
        except (OSError, ValueError) as exc:
            self._log.error_from_exception(exc)
            self._remove_stale_output()
            return False
        return self._log.error_count == errors_before

    def build(self) -> FragmentDocument:
        """Walk the tree and return the complete fragment document."""
        children = self._process_directory(self._root, self._config.directory_reference_id)
        return FragmentDocument(
            directory_reference_id=self._config.directory_reference_id,
            component_group_id=self._config.component_group_id,
            children=children,
            component_ids=tuple(self._components),
        )

    def _process_directory(
        self, dir_path: Path, outer_directory_id: str
    ) -> tuple[ComponentNode | DirectoryNode, ...]:
        self._log.message(f"Processing dir {dir_path}", importance="low")
        guid_store = GuidStore.load(dir_path, self._log)
        children: list[ComponentNode | DirectoryNode] = []

        if self._config.give_all_permissions:
            children.append(self._directory_permission_component(outer_directory_id, guid_store))

        with os.scandir(dir_path) as scan:
            entries = sorted(scan, key=lambda item: item.name)

        files = [
            Path(entry.path)
            for entry in entries
            if entry.is_file() and self._is_included_file(Path(entry.path))
        ]
        for index, path in enumerate(files):
            children.append(self._process_file(path, guid_store, index == 0, outer_directory_id))

        for entry in entries:
            if not entry.is_dir():
                continue
            sub_path = Path(entry.path)
            if self._is_excluded(sub_path) or entry.name in VCS_DIRECTORY_NAMES:
                continue
            sub_id = directory_id(outer_directory_id, entry.name)
            sub_children = self._process_directory(sub_path, sub_id)
            if not sub_children:
                self._log.message(f"Skipping empty directory {sub_path}", importance="low")
                continue
            children.append(DirectoryNode(id=sub_id, name=entry.name, children=sub_children))

        return tuple(children)

    def _directory_permission_component(
        self, parent_directory_id: str, guid_store: GuidStore
    ) -> ComponentNode:
        component_id = directory_id(parent_directory_id)
        if component_id not in guid_store and not self._config.check_only:
            self._files_changed = True
        guid = guid_store.get_or_create(component_id, self._config.check_only)
        self._components.append(component_id)
        return ComponentNode(id=component_id, guid=guid, create_folder=True)

    def _process_file(
        self, path: Path, guid_store: GuidStore, is_first: bool, parent_directory_id: str
    ) -> ComponentNode:
        name = path.name
        component_id = self._ids.allocate(file_id(parent_directory_id, name))
        self._log.message(f"Adding file {path} with id {component_id}")

        if component_id not in guid_store and not self._config.check_only:
            self._files_changed = True
        guid = guid_store.get_or_create(component_id, self._config.check_only)
        if guid is None:
            self._files_changed = True

        file_node = FileNode(
            id=component_id,
            name=name,
            source=relative_path_to(self._source_base, path),
            key_path=is_first,
            grant_permissions=self._config.give_all_permissions,
        )
        self._components.append(component_id)
        self._note_modification_time(path)
        return ComponentNode(
            id=component_id,
            guid=guid,
            file=file_node,
            remove_file_id="_" + uuid.uuid4().hex,
        )

    def _note_modification_time(self, path: Path) -> None:
        if self._reference_mtime is None:
            self._files_changed = True
            return
        try:
            mtime = path.stat().st_mtime
        except OSError as exc:
            self._log.warning(f"Cannot read modification time of {path}: {exc}")
            self._files_changed = True
            return
        if mtime > self._reference_mtime:
            self._files_changed = True

    def _is_included_file(self, path: Path) -> bool:
        full = str(path)
        if not self._match.search(full):
            return False
        if self._ignore.search(full) or self._ignore.search(path.name):
            return False
        if self._is_excluded(path):
            return False
        return path.name != GUID_STORE_FILE_NAME

    def _is_excluded(self, path: Path) -> bool:
        return str(path).lower() in self._excluded

    def _build_exclusions(self, exclude: tuple[str, ...]) -> frozenset[str]:
        keys: set[str] = set()
        for item in exclude:
            candidate = Path(item)
            if not candidate.is_absolute():
                candidate = self._root / candidate
            keys.add(os.path.abspath(candidate).lower())
        return frozenset(keys)

    def _read_previous_state(self) -> FragmentSignature | None:
        """Capture the previous output's timestamp and structure."""
        if not self._output_path.exists():
            return None
        try:
            self._reference_mtime = self._output_path.stat().st_mtime
            root = ET.parse(self._output_path).getroot()
        except (OSError, ET.ParseError) as exc:
            self._log.message(f"Ignoring unreadable previous output: {exc}", importance="low")
            self._reference_mtime = None
            return None
        return fragment_signature(root)

    def _write_if_changed(self, document: FragmentDocument) -> None:
        if self._config.check_only:
            return
        if not self._files_changed:
            self._log.message(f"No installable changes; leaving {self._output_path} untouched")
            return
        self._output_path.parent.mkdir(parents=True, exist_ok=True)
        tree = ET.ElementTree(render_fragment(document))
        ET.indent(tree, space="    ")
        # The previous fragment survives until the new one is fully written.
        staging = self._output_path.with_name(self._output_path.name + ".tmp")
        try:
            tree.write(staging, encoding="utf-8", xml_declaration=True)
            os.replace(staging, self._output_path)
        finally:
            staging.unlink(missing_ok=True)

    def _remove_stale_output(self) -> None:
        if self._output_path.exists():
            self._output_path.unlink()


def render_fragment(document: FragmentDocument) -> ET.Element:
    """Render a fragment document to a namespaced ``Wix`` element."""
    wix = ET.Element(_tag("Wix"))
    fragment = ET.SubElement(wix, _tag("Fragment"))
    directory_ref = ET.SubElement(
        fragment, _tag("DirectoryRef"), {"Id": document.directory_reference_id}
    )
    for child in document.children:
        _render_node(directory_ref, child)
    group = ET.SubElement(fragment, _tag("ComponentGroup"), {"Id": document.component_group_id})
    for component_id in document.component_ids:
        ET.SubElement(group, _tag("ComponentRef"), {"Id": component_id})
    return wix


def fragment_signature(element: ET.Element) -> FragmentSignature:
    """Structure of a rendered fragment, ignoring whitespace and RemoveFile ids.

    RemoveFile ids are minted fresh on every run, so two fragments that agree
    on everything else install the same thing.
    """
    attributes = dict(element.attrib)
    if element.tag == _tag("RemoveFile"):
        attributes.pop("Id", None)
    return (
        element.tag,
        tuple(sorted(attributes.items())),
        tuple(fragment_signature(child) for child in element),
    )


def _render_node(parent: ET.Element, node: ComponentNode | DirectoryNode) -> None:
    if isinstance(node, DirectoryNode):
        element = ET.SubElement(parent, _tag("Directory"), {"Id": node.id, "Name": node.name})
        for child in node.children:
            _render_node(element, child)
        return

    component = ET.SubElement(parent, _tag("Component"), {"Id": node.id})
    if node.guid is not None:
        component.set("Guid", node.guid)
    if node.create_folder:
        create_folder = ET.SubElement(component, _tag("CreateFolder"), {"Directory": node.id})
        _add_permission(create_folder)
    if node.file is not None:
        file_attributes = {"Id": node.file.id, "Name": node.file.name}
        if node.file.key_path:
            file_attributes["KeyPath"] = "yes"
        file_attributes["Source"] = node.file.source
        file_element = ET.SubElement(component, _tag("File"), file_attributes)
        if node.file.grant_permissions:
            _add_permission(file_element)
    if node.remove_file_id is not None:
        ET.SubElement(
            component,
            _tag("RemoveFile"),
            {"Id": node.remove_file_id, "On": "both", "Name": "*.*"},
        )


def _add_permission(parent: ET.Element) -> None:
    ET.SubElement(parent, _tag("Permission"), {"GenericAll": "yes", "User": "Everyone"})


def _tag(name: str) -> str:
    return f"{{{WIX_NAMESPACE}}}{name}"
