"""Path filtering and logical identifier derivation for tree entries."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from repoloader.github.base import TreeEntry

logger = logging.getLogger(__name__)

_LEADING_DOT_SLASH = re.compile(r"^\.?/?")


@dataclass(frozen=True)
class MappedEntry:
    """A selected file together with its derived logical id."""

    id: str
    path: str
    sha: str
    size: int


@dataclass
class Selection:
    """Files selected from a listing, in listing order."""

    files: list[MappedEntry] = field(default_factory=list)
    ids: frozenset[str] = frozenset()
    collisions: list[str] = field(default_factory=list)


def normalize_directory(directory: str) -> str:
    """Normalize a configured subdirectory to a bare relative prefix.

    ``""``, ``"."``, ``"./"`` and ``"/"`` all mean the repository root.
    """
    return _LEADING_DOT_SLASH.sub("", directory.strip(), count=1).strip("/")


def is_under(path: str, base_path: str) -> bool:
    """True when path lies inside base_path (matched on whole segments)."""
    if not base_path:
        return True
    return path.startswith(base_path + "/")


def strip_extension(name: str) -> str:
    """Remove one trailing extension from a file name.

    Dot-files such as ``.gitignore`` have no stem and are returned unchanged.
    """
    stem, dot, _ext = name.rpartition(".")
    if dot and stem:
        return stem
    return name


def derive_id(path: str, base_path: str) -> str:
    """Derive the logical id of a file from its path.

    The base path is stripped, the final segment loses one extension and
    leading/trailing separators are trimmed:

    >>> derive_id("docs/guide/intro.md", "docs")
    'guide/intro'
    >>> derive_id("README.md", "")
    'README'
    """
    relative = path[len(base_path) :] if base_path and path.startswith(base_path) else path
    head, sep, name = relative.rpartition("/")
    return f"{head}{sep}{strip_extension(name)}".strip("/")


def select_entries(entries: Iterable[TreeEntry], directory: str = "") -> Selection:
    """Select files under directory and map each one to its logical id.

    Directories, submodules and entries without a sha are skipped silently.
    When two paths map to the same id the first one in listing order wins and
    later paths are reported as collisions.
    """
    base_path = normalize_directory(directory)
    selection = Selection()
    seen: dict[str, str] = {}

    for entry in entries:
        if not entry.sha or not entry.is_file:
            continue
        if not is_under(entry.path, base_path):
            continue
        record_id = derive_id(entry.path, base_path)
        if not record_id:
            continue
        if record_id in seen:
            logger.warning(
                "Skipping %s: id %r already taken by %s", entry.path, record_id, seen[record_id]
            )
            selection.collisions.append(entry.path)
            continue
        seen[record_id] = entry.path
        selection.files.append(
            MappedEntry(id=record_id, path=entry.path, sha=entry.sha, size=entry.size)
        )

    selection.ids = frozenset(seen)
    return selection
