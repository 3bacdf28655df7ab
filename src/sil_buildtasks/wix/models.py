"""Immutable installer fragment document model."""

from __future__ import annotations

from dataclasses import dataclass

WIX_NAMESPACE = "http://schemas.microsoft.com/wix/2006/wi"


@dataclass(slots=True, frozen=True)
class FileNode:
    """A ``File`` element installed by one component."""

    id: str
    name: str
    source: str
    key_path: bool
    grant_permissions: bool


@dataclass(slots=True, frozen=True)
class ComponentNode:
    """A ``Component`` wrapping either one file or a directory permission grant."""

    id: str
    guid: str | None
    file: FileNode | None = None
    create_folder: bool = False
    remove_file_id: str | None = None


@dataclass(slots=True, frozen=True)
class DirectoryNode:
    """A ``Directory`` mirroring one source subdirectory."""

    id: str
    name: str
    children: tuple[ComponentNode | DirectoryNode, ...]


@dataclass(slots=True, frozen=True)
class FragmentDocument:
    """Complete fragment: the directory tree plus its component group."""

    directory_reference_id: str
    component_group_id: str
    children: tuple[ComponentNode | DirectoryNode, ...]
    component_ids: tuple[str, ...]
