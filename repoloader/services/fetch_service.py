"""Concurrent blob retrieval and decoding."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from repoloader.exceptions import BlobDecodeError, LoaderError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from repoloader.github.base import Blob, TreeSource
    from repoloader.schemas.record import Record
    from repoloader.services.path_service import MappedEntry

logger = logging.getLogger(__name__)


def decode_blob(blob: Blob) -> str:
    """Decode a blob payload to UTF-8 text according to its declared encoding."""
    encoding = blob.encoding.lower()
    if encoding == "base64":
        try:
            raw = base64.b64decode("".join(blob.content.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = f"Blob {blob.sha} has invalid base64 content"
            raise BlobDecodeError(msg) from exc
    elif encoding in ("utf-8", "utf8"):
        return blob.content
    else:
        msg = f"Blob {blob.sha} has unsupported encoding {blob.encoding!r}"
        raise BlobDecodeError(msg)

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = f"Blob {blob.sha} is not valid UTF-8 text"
        raise BlobDecodeError(msg) from exc


@dataclass
class FetchOutcome:
    """Result of processing one entry: either a record or the error that stopped it."""

    entry: MappedEntry
    record: Record | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None


class BlobFetcher:
    """Fetches blobs for one repository with bounded concurrency.

    Blobs are cached per sha for the lifetime of the fetcher, so entries that
    share content download it once.
    """

    def __init__(self, source: TreeSource, owner: str, repo: str, concurrency: int = 16) -> None:
        self.source = source
        self.owner = owner
        self.repo = repo
        self._semaphore = asyncio.Semaphore(max(concurrency, 1))
        self._texts: dict[str, asyncio.Task[str]] = {}

    async def _download(self, sha: str) -> str:
        async with self._semaphore:
            blob = await self.source.get_blob(self.owner, self.repo, sha)
        return decode_blob(blob)

    async def fetch_text(self, sha: str) -> str:
        """Return the decoded text of the blob with sha."""
        task = self._texts.get(sha)
        if task is None:
            task = asyncio.ensure_future(self._download(sha))
            self._texts[sha] = task
        return await task

    async def fetch_all(
        self,
        entries: Sequence[MappedEntry],
        handle: Callable[[MappedEntry, str], Awaitable[Record]],
    ) -> list[FetchOutcome]:
        """Fetch every entry concurrently and pass its text to handle.

        Any exception from one entry, whether a ``LoaderError`` or an
        unexpected failure in handle or the store behind it, is captured in
        that entry's outcome and never cancels the others. Every worker has
        finished when this returns. Outcomes come back in entry order.
        """

        async def run(entry: MappedEntry) -> FetchOutcome:
            try:
                text = await self.fetch_text(entry.sha)
                record = await handle(entry, text)
            except LoaderError as exc:
                logger.warning("Failed to sync %s (%s): %s", entry.path, entry.sha, exc)
                return FetchOutcome(entry=entry, error=exc)
            except Exception as exc:
                logger.exception("Unexpected error syncing %s (%s)", entry.path, entry.sha)
                return FetchOutcome(entry=entry, error=exc)
            logger.debug("Synced %s as %r", entry.path, entry.id)
            return FetchOutcome(entry=entry, record=record)

        return list(await asyncio.gather(*(run(entry) for entry in entries)))
