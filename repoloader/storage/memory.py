"""In-memory key-value store."""

from __future__ import annotations

from typing import Generic, TypeVar

V = TypeVar("V")


class MemoryStore(Generic[V]):
    """Dict-backed store satisfying both ``MetaStore`` and ``RecordStore``.

    State lives only as long as the instance; useful for tests and one-shot runs.
    """

    def __init__(self, initial: dict[str, V] | None = None) -> None:
        self._data: dict[str, V] = dict(initial or {})

    async def get(self, key: str) -> V | None:
        return self._data.get(key)

    async def set(self, key: str, value: V) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self._data)

    async def items(self) -> list[tuple[str, V]]:
        return list(self._data.items())

    def snapshot(self) -> dict[str, V]:
        """Return a shallow copy of the stored data."""
        return dict(self._data)
