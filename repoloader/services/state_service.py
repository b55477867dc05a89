"""Sync state: the root tree fingerprint plus blob sha -> id bookkeeping."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from repoloader.storage.base import MetaStore

logger = logging.getLogger(__name__)

ROOT_KEY = "root"


@dataclass
class StateSnapshot:
    """Point-in-time copy of a loader's sync state."""

    root: str | None = None
    fingerprints: dict[str, str] = field(default_factory=dict)


class SyncState:
    """Fingerprint store layered over a ``MetaStore``.

    The ``root`` key holds the sha of the last fully converged tree; every
    other key is a blob sha whose value is the id last synced with that content.
    Only the coordinating sync flow mutates it.
    """

    def __init__(self, store: MetaStore) -> None:
        self.store = store

    async def root(self) -> str | None:
        return await self.store.get(ROOT_KEY)

    async def set_root(self, tree_sha: str) -> None:
        await self.store.set(ROOT_KEY, tree_sha)

    async def clear_root(self) -> None:
        await self.store.delete(ROOT_KEY)

    async def lookup(self, sha: str) -> str | None:
        """Return the id last synced with sha."""
        return await self.store.get(sha)

    async def load(self) -> StateSnapshot:
        """Read the whole state into a snapshot."""
        snapshot = StateSnapshot()
        for key, value in await self.store.items():
            if key == ROOT_KEY:
                snapshot.root = value
            else:
                snapshot.fingerprints[key] = value
        return snapshot

    async def mark_synced(self, sha: str, record_id: str, superseded: Iterable[str] = ()) -> None:
        """Record that record_id now holds the content of sha.

        Shas in ``superseded`` that still point at record_id describe content
        the record no longer has and are dropped, so a later revert to that
        content is fetched again instead of being mistaken for unchanged.
        """
        for old_sha in superseded:
            if old_sha != sha and await self.lookup(old_sha) == record_id:
                await self.store.delete(old_sha)
        await self.store.set(sha, record_id)

    async def forget(self, record_ids: Iterable[str]) -> int:
        """Drop every sha mapped to one of record_ids. Returns the number dropped."""
        targets = set(record_ids)
        if not targets:
            return 0
        dropped = 0
        for key, value in await self.store.items():
            if key != ROOT_KEY and value in targets:
                await self.store.delete(key)
                dropped += 1
        if dropped:
            logger.debug("Dropped %d fingerprint(s) of deleted records", dropped)
        return dropped
