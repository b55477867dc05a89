"""Tree/blob data classes and the transport protocol consumed by the loader."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a recursive tree listing.

    ``type`` is ``"blob"`` for files, ``"tree"`` for directories and
    ``"commit"`` for submodule references. ``sha`` may be missing for entries
    GitHub cannot address.
    """

    path: str
    type: str
    sha: str | None = None
    size: int = 0

    @property
    def is_file(self) -> bool:
        return self.type == "blob"


@dataclass(frozen=True)
class Tree:
    """A full recursive tree listing at one ref."""

    sha: str
    entries: list[TreeEntry] = field(default_factory=list)
    truncated: bool = False


@dataclass(frozen=True)
class Blob:
    """Blob payload as returned by the API, still in its declared encoding."""

    sha: str
    content: str
    encoding: str
    size: int = 0


@runtime_checkable
class TreeSource(Protocol):
    """Versioned-tree API: recursive listing plus blob-by-sha retrieval."""

    async def get_tree(self, owner: str, repo: str, ref: str, recursive: bool = True) -> Tree:
        """List the tree at ref. Raises GitHubClientError on failure."""
        ...

    async def get_blob(self, owner: str, repo: str, sha: str) -> Blob:
        """Fetch one blob by sha. Raises GitHubClientError on failure."""
        ...
