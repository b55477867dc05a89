"""GitHub loader: incremental sync of a repository subtree into a record store.

One run is a three-phase protocol:

1. list the tree, select files and compute the plan (target ids, fetches,
   deletions) against the recorded sync state;
2. fetch, validate and write every changed file concurrently;
3. delete records whose ids are not in the phase-1 target set.

Sync state is only touched by the coordinating flow, after the workers have
been joined.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from repoloader.config import Settings
from repoloader.exceptions import ConfigurationError, GitHubClientError
from repoloader.github.client import GitHubClient
from repoloader.services.fetch_service import BlobFetcher
from repoloader.services.parser_service import ParserRegistry
from repoloader.services.path_service import normalize_directory, select_entries
from repoloader.services.record_service import SchemaValidator, delete_stale, write_record
from repoloader.services.state_service import SyncState
from repoloader.services.sync_service import SyncPlan, SyncResult, compute_sync_plan
from repoloader.storage.memory import MemoryStore

if TYPE_CHECKING:
    from collections.abc import Mapping

    from repoloader.github.base import Tree, TreeSource
    from repoloader.schemas.loader import LoaderOptions
    from repoloader.schemas.record import Record
    from repoloader.services.parser_service import Parser
    from repoloader.services.path_service import MappedEntry
    from repoloader.services.record_service import RecordValidator
    from repoloader.storage.base import MetaStore, RecordStore

logger = logging.getLogger(__name__)


def resolve_token(options: LoaderOptions, settings: Settings) -> str:
    """Return the access token from options or settings (``GITHUB_TOKEN``).

    Raises ConfigurationError when neither provides one.
    """
    token = options.token or settings.github_token
    if not token:
        msg = (
            "Missing GitHub token. Set it in the GITHUB_TOKEN environment variable "
            "or pass it as an option."
        )
        raise ConfigurationError(msg)
    return token


def loader_name(options: LoaderOptions) -> str:
    """Human-readable target name; also namespaces sync state and records."""
    name = f"{options.owner}/{options.repo}"
    if options.branch != "main":
        name += f"#{options.branch}"
    directory = normalize_directory(options.directory)
    if directory:
        name += f" {directory}"
    return name


class GitHubLoader:
    """Mirrors files under one directory of a GitHub ref into a record store."""

    def __init__(
        self,
        options: LoaderOptions,
        settings: Settings | None = None,
        *,
        source: TreeSource | None = None,
        meta_store: MetaStore | None = None,
        record_store: RecordStore | None = None,
        parsers: Mapping[str, Parser] | None = None,
        validator: RecordValidator | None = None,
    ) -> None:
        self.options = options
        self.settings = settings if settings is not None else Settings()
        token = resolve_token(options, self.settings)

        self.name = loader_name(options)
        self.base_path = normalize_directory(options.directory)
        self._owns_source = source is None
        self.source: TreeSource = (
            source if source is not None else GitHubClient.from_settings(self.settings, token)
        )
        self.state = SyncState(meta_store if meta_store is not None else MemoryStore())
        self.records: RecordStore = record_store if record_store is not None else MemoryStore()
        self.validator: RecordValidator = (
            validator if validator is not None else SchemaValidator(ParserRegistry(parsers))
        )
        self._lock = asyncio.Lock()

    async def aclose(self) -> None:
        """Close the GitHub client if this loader created it."""
        if self._owns_source and isinstance(self.source, GitHubClient):
            await self.source.aclose()

    async def __aenter__(self) -> GitHubLoader:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def _list_tree(self) -> Tree:
        tree = await self.source.get_tree(
            self.options.owner, self.options.repo, self.options.branch, recursive=True
        )
        if tree.truncated:
            msg = f"Tree listing for {self.name} is truncated; refusing to reconcile"
            raise GitHubClientError(msg)
        return tree

    async def _compute_plan(self, tree: Tree) -> SyncPlan:
        selection = select_entries(tree.entries, self.base_path)
        snapshot = await self.state.load()
        existing = await self.records.keys()
        return compute_sync_plan(tree.sha, snapshot, selection, existing)

    async def _accept(self, entry: MappedEntry, content: str) -> Record:
        record = self.validator(entry, content)
        await write_record(self.records, record)
        return record

    async def plan(self) -> SyncPlan:
        """List the tree and compute the change set without changing anything."""
        return await self._compute_plan(await self._list_tree())

    async def load(self) -> SyncResult:
        """Run one full sync pass.

        Tree listing failures propagate and leave the store untouched. Failures
        of individual files are reported in the result; with
        ``Settings.fail_fast`` the first one is re-raised once the run has
        finished writing and deleting.
        """
        async with self._lock:
            logger.info("Loading data from repo %s", self.name)
            tree = await self._list_tree()
            plan = await self._compute_plan(tree)
            result = SyncResult(
                tree_sha=tree.sha,
                short_circuited=plan.short_circuit,
                skipped=list(plan.unchanged),
                collisions=list(plan.collisions),
            )
            first_error: Exception | None = None

            if plan.to_fetch:
                fetcher = BlobFetcher(
                    self.source,
                    self.options.owner,
                    self.options.repo,
                    concurrency=self.settings.max_concurrent_fetches,
                )
                for outcome in await fetcher.fetch_all(plan.to_fetch, self._accept):
                    entry = outcome.entry
                    if outcome.ok:
                        await self.state.mark_synced(
                            entry.sha, entry.id, plan.superseded.get(entry.id, ())
                        )
                        result.fetched.append(entry.id)
                    else:
                        result.failed[entry.id] = str(outcome.error)
                        if first_error is None:
                            first_error = outcome.error

            result.deleted = await delete_stale(self.records, self.state, plan.to_delete)

            if not result.converged:
                # Force a full reconcile next time, even if the tree sha reappears.
                await self.state.clear_root()
            elif not plan.short_circuit:
                await self.state.set_root(tree.sha)

            logger.info(
                "Loaded %d records from %s (%d unchanged, %d deleted, %d failed)",
                len(result.fetched),
                self.name,
                len(result.skipped),
                len(result.deleted),
                len(result.failed),
            )
            if first_error is not None and self.settings.fail_fast:
                raise first_error
            return result
