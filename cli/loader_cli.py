"""CLI runner for repoloader incremental GitHub sync."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Any

from repoloader.config import Settings
from repoloader.database import create_engine, init_db
from repoloader.exceptions import ConfigurationError, GitHubClientError, LoaderError
from repoloader.loader import GitHubLoader, loader_name, resolve_token
from repoloader.schemas.loader import LoaderOptions
from repoloader.services.sync_service import ChangeType
from repoloader.storage.sql import open_sql_stores

if TYPE_CHECKING:
    from repoloader.services.sync_service import SyncPlan, SyncResult


def _configure_logging(debug: bool) -> None:
    """Configure CLI logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.INFO if debug else logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoloader",
        description="Mirror files from a GitHub repository into a local record store",
    )
    parser.add_argument("--owner", "-o", required=True, help="Repository owner")
    parser.add_argument("--repo", "-r", required=True, help="Repository name")
    parser.add_argument("--directory", "-d", default="", help="Subdirectory to mirror")
    parser.add_argument("--branch", "-b", default="main", help="Branch, tag or sha")
    parser.add_argument("--token", help="GitHub token (default: GITHUB_TOKEN)")
    parser.add_argument("--database-url", help="SQLAlchemy database URL")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("sync", help="Run one sync pass")
    subparsers.add_parser("status", help="Show what a sync would change")
    subparsers.add_parser("records", help="List stored record ids")
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.debug:
        overrides["debug"] = True
    return Settings(**overrides)


_CHANGE_MARKERS = {
    ChangeType.REMOTE_ADD: "+",
    ChangeType.REMOTE_MODIFY: "~",
    ChangeType.REMOTE_DELETE: "-",
}


def print_plan(plan: SyncPlan) -> None:
    paths = {entry.id: entry.path for entry in plan.to_fetch}
    print("Sync Status:")
    print(f"  Tree:            {plan.tree_sha}")
    print(f"  Selected:        {len(plan.target_ids)}")
    print(f"  Up to date:      {'no' if plan.has_work else 'yes'}")
    print(f"  To fetch:        {len(plan.to_fetch)}")
    print(f"  Unchanged:       {len(plan.unchanged)}")
    print(f"  To delete:       {len(plan.to_delete)}")
    for change in plan.changes:
        marker = _CHANGE_MARKERS.get(change.change_type)
        if marker is None:
            continue
        fetched = paths.get(change.record_id)
        print(f"    {marker} {change.record_id}" + (f" ({fetched})" if fetched else ""))
    for path in plan.collisions:
        print(f"    ! {path} (id collision)")


def print_result(result: SyncResult) -> None:
    for record_id, error in sorted(result.failed.items()):
        print(f"  FAILED: {record_id}: {error}")
    for path in result.collisions:
        print(f"  Warning: skipped {path} (id collision)")
    print(
        f"Sync complete. {len(result.fetched)} fetched, {len(result.skipped)} unchanged, "
        f"{len(result.deleted)} deleted, {len(result.failed)} failed."
    )


async def run(args: argparse.Namespace) -> int:
    """Execute one CLI command. Returns the process exit code."""
    settings = _settings_from_args(args)
    options = LoaderOptions(
        owner=args.owner,
        repo=args.repo,
        token=args.token,
        directory=args.directory,
        branch=args.branch,
    )
    if args.command in ("sync", "status"):
        try:
            resolve_token(options, settings)
        except ConfigurationError as exc:
            print(f"Error: {exc}")
            return 2

    engine, session_factory = create_engine(settings)
    try:
        await init_db(engine)
        meta_store, record_store = open_sql_stores(session_factory, loader_name(options))

        if args.command == "records":
            for record_id in await record_store.keys():
                print(record_id)
            return 0

        async with GitHubLoader(
            options, settings, meta_store=meta_store, record_store=record_store
        ) as loader:
            if args.command == "status":
                print_plan(await loader.plan())
                return 0
            result = await loader.load()
            print_result(result)
            return 0 if result.converged else 1
    except LoaderError as exc:
        print(f"Error: {exc}")
        if isinstance(exc, GitHubClientError) and exc.is_rate_limited:
            print("GitHub rate limit reached. Wait for the limit to reset or pass a token.")
        return 1
    finally:
        await engine.dispose()


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(1)
    _configure_logging(args.debug)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
