"""SQLAlchemy-backed stores for sync state and records.

Every operation opens its own session from the factory, so concurrent fetch
workers writing distinct record ids never share a session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from repoloader.models.record import RecordEntry
from repoloader.models.sync import SyncMeta
from repoloader.schemas.record import Record
from repoloader.services.datetime_service import format_iso, now_utc

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class SqlMetaStore:
    """Sync state of one loader, stored in the ``sync_meta`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], loader: str) -> None:
        self._session_factory = session_factory
        self.loader = loader

    async def get(self, key: str) -> str | None:
        async with self._session_factory() as session:
            row = await session.get(SyncMeta, (self.loader, key))
            return row.value if row is not None else None

    async def set(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            await session.merge(SyncMeta(loader=self.loader, key=key, value=value))
            await session.commit()

    async def delete(self, key: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                delete(SyncMeta).where(SyncMeta.loader == self.loader, SyncMeta.key == key)
            )
            await session.commit()

    async def keys(self) -> list[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SyncMeta.key).where(SyncMeta.loader == self.loader).order_by(SyncMeta.key)
            )
            return list(result.scalars().all())

    async def items(self) -> list[tuple[str, str]]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SyncMeta.key, SyncMeta.value)
                .where(SyncMeta.loader == self.loader)
                .order_by(SyncMeta.key)
            )
            return [(key, value) for key, value in result.all()]


class SqlRecordStore:
    """Records of one loader, stored in the ``records`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], loader: str) -> None:
        self._session_factory = session_factory
        self.loader = loader

    async def get(self, key: str) -> Record | None:
        async with self._session_factory() as session:
            row = await session.get(RecordEntry, (self.loader, key))
            if row is None:
                return None
            return Record(
                id=row.id,
                path=row.path,
                sha=row.sha,
                size=row.size,
                content=row.content,
                data=row.data,
            )

    async def set(self, key: str, value: Record) -> None:
        payload = value.model_dump(mode="json")
        async with self._session_factory() as session:
            await session.merge(
                RecordEntry(
                    loader=self.loader,
                    id=key,
                    path=payload["path"],
                    sha=payload["sha"],
                    size=payload["size"],
                    content=payload["content"],
                    data=payload["data"],
                    synced_at=format_iso(now_utc()),
                )
            )
            await session.commit()

    async def delete(self, key: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                delete(RecordEntry).where(RecordEntry.loader == self.loader, RecordEntry.id == key)
            )
            await session.commit()

    async def keys(self) -> list[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(RecordEntry.id)
                .where(RecordEntry.loader == self.loader)
                .order_by(RecordEntry.id)
            )
            return list(result.scalars().all())


def open_sql_stores(
    session_factory: async_sessionmaker[AsyncSession], loader: str
) -> tuple[SqlMetaStore, SqlRecordStore]:
    """Return the (sync state, records) store pair for one loader name."""
    return SqlMetaStore(session_factory, loader), SqlRecordStore(session_factory, loader)
