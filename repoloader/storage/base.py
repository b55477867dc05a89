"""Key-value store protocols shared by sync state and records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from repoloader.schemas.record import Record


@runtime_checkable
class MetaStore(Protocol):
    """Persisted string mapping holding one loader's sync state."""

    async def get(self, key: str) -> str | None:
        """Return the value stored under key, or None."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    async def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""
        ...

    async def keys(self) -> list[str]:
        """Return all keys currently stored."""
        ...

    async def items(self) -> list[tuple[str, str]]:
        """Return every (key, value) pair in one read."""
        ...


@runtime_checkable
class RecordStore(Protocol):
    """Persisted records of one loader, keyed by logical id.

    Implementations must accept concurrent ``set`` calls for distinct ids.
    """

    async def get(self, key: str) -> Record | None:
        """Return the record stored under key, or None."""
        ...

    async def set(self, key: str, value: Record) -> None:
        """Store a record, overwriting any previous record with the same id."""
        ...

    async def delete(self, key: str) -> None:
        """Remove a record. Missing ids are ignored."""
        ...

    async def keys(self) -> list[str]:
        """Return all record ids currently stored."""
        ...
