"""Record assembly, validation, writing and the deletion pass."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError

from repoloader.exceptions import RecordValidationError
from repoloader.schemas.record import Record
from repoloader.services.parser_service import ParserRegistry

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from repoloader.services.path_service import MappedEntry
    from repoloader.services.state_service import SyncState
    from repoloader.storage.base import RecordStore

logger = logging.getLogger(__name__)


class RecordValidator(Protocol):
    """Schema stage: turns a fetched entry into an accepted record or rejects it."""

    def __call__(self, entry: MappedEntry, content: str) -> Record:
        """Return the validated record. Raises RecordValidationError on rejection."""
        ...


class SchemaValidator:
    """Default schema stage.

    Parses content with the registry, validates the result against
    ``Record`` and then applies an optional transform hook. Any failure of a
    parser or of the hook rejects the record.
    """

    def __init__(
        self,
        parsers: ParserRegistry | None = None,
        transform: Callable[[Record], Record] | None = None,
    ) -> None:
        self.parsers = parsers if parsers is not None else ParserRegistry()
        self.transform = transform

    def __call__(self, entry: MappedEntry, content: str) -> Record:
        try:
            data = self.parsers.parse(entry.path, content)
        except Exception as exc:
            raise RecordValidationError(entry.id, f"cannot parse {entry.path}: {exc}") from exc

        try:
            record = Record(
                id=entry.id,
                path=entry.path,
                sha=entry.sha,
                size=entry.size,
                content=content,
                data=data,
            )
        except ValidationError as exc:
            raise RecordValidationError(entry.id, str(exc)) from exc

        if self.transform is None:
            return record
        try:
            return self.transform(record)
        except Exception as exc:
            raise RecordValidationError(entry.id, str(exc)) from exc


async def write_record(store: RecordStore, record: Record) -> None:
    """Store a record under its id, replacing any previous record."""
    await store.set(record.id, record)


async def delete_stale(
    store: RecordStore,
    state: SyncState,
    record_ids: Sequence[str],
) -> list[str]:
    """Delete records and the sync state fingerprints that pointed at them.

    record_ids must come from the plan computed before fetching started.
    """
    deleted: list[str] = []
    for record_id in record_ids:
        await store.delete(record_id)
        deleted.append(record_id)
        logger.info("Deleted record %r", record_id)
    await state.forget(deleted)
    return deleted
