"""Deterministic installer identifiers derived from the directory tree."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final

MAX_FILE_ID_LENGTH: Final[int] = 50
_UNSAFE_ID_CHARS: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9._]")
_VALID_ID_START: Final[re.Pattern[str]] = re.compile(r"[A-Za-z_]")


def sanitize_id(candidate: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._]`` with an underscore."""
    return _UNSAFE_ID_CHARS.sub("_", candidate)


def directory_id(parent_id: str, name: str = "") -> str:
    """Id of a child directory, or of the directory itself when ``name`` is empty.

    Same-named directories under different parents stay distinct because the
    parent id is part of the result.
    """
    candidate = parent_id
    if name:
        candidate = f"{parent_id}.{name}".rstrip(".")
    return sanitize_id(candidate)


def file_id(parent_directory_id: str, file_name: str) -> str:
    """Id of a file component before collision disambiguation.

    Over-long ids keep their trailing characters, where the path-specific part
    lives.
    """
    candidate = f"{parent_directory_id}.{file_name}"
    if len(candidate) > MAX_FILE_ID_LENGTH:
        candidate = candidate[-MAX_FILE_ID_LENGTH:]
    if not _VALID_ID_START.match(candidate):
        candidate = "_" + candidate
    return sanitize_id(candidate)


@dataclass(slots=True)
class IdAllocator:
    """Case-insensitive numeric-suffix disambiguation across one fragment."""

    _suffixes: dict[str, int] = field(default_factory=dict)

    def allocate(self, candidate: str) -> str:
        key = candidate.lower()
        if key in self._suffixes:
            suffix = self._suffixes[key] + 1
            self._suffixes[key] = suffix
            return f"{candidate}{suffix}"
        self._suffixes[key] = 0
        return candidate
