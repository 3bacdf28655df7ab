"""Installer fragment generation with persistent component GUIDs."""

from .fragment import FragmentBuilder, render_fragment
from .guid_store import GUID_STORE_FILE_NAME, GuidStore, GuidStoreFormatError
from .ids import MAX_FILE_ID_LENGTH, IdAllocator, directory_id, file_id, sanitize_id
from .models import WIX_NAMESPACE, ComponentNode, DirectoryNode, FileNode, FragmentDocument
from .paths import relative_path_to
from .recreate import recreate_guid_stores

__all__ = [
    "ComponentNode",
    "DirectoryNode",
    "FileNode",
    "FragmentBuilder",
    "FragmentDocument",
    "GUID_STORE_FILE_NAME",
    "GuidStore",
    "GuidStoreFormatError",
    "IdAllocator",
    "MAX_FILE_ID_LENGTH",
    "WIX_NAMESPACE",
    "directory_id",
    "file_id",
    "recreate_guid_stores",
    "relative_path_to",
    "render_fragment",
    "sanitize_id",
]
