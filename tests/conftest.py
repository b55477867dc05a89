"""Shared test fixtures for repoloader."""

from __future__ import annotations

import base64
import hashlib
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from repoloader.config import Settings
from repoloader.database import init_db
from repoloader.exceptions import GitHubClientError
from repoloader.github.base import Blob, Tree, TreeEntry
from repoloader.schemas.loader import LoaderOptions

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

TEST_TOKEN = "test-token"


def git_sha(content: str) -> str:
    """Git blob sha of content, so equal content always gets an equal sha."""
    raw = content.encode()
    return hashlib.sha1(b"blob %d\x00" % len(raw) + raw).hexdigest()


def tree_sha(files: dict[str, str]) -> str:
    digest = hashlib.sha1()
    for path in sorted(files):
        digest.update(f"{path}\x00{git_sha(files[path])}\n".encode())
    return digest.hexdigest()


class FakeGitHub:
    """In-memory stand-in for the GitHub tree/blob API.

    ``set_files`` replaces the repository contents; the tree sha changes
    whenever any path or content changes, like a real git tree.
    """

    def __init__(self) -> None:
        self.tree: Tree = Tree(sha=tree_sha({}))
        self.blobs: dict[str, str] = {}
        self.tree_requests: list[tuple[str, str, str]] = []
        self.blob_requests: list[str] = []
        self.failing_shas: set[str] = set()
        self.fail_tree = False
        self.tree_error_status = 502
        self.encoding = "base64"

    def set_files(
        self,
        files: dict[str, str],
        *,
        extra: list[TreeEntry] | None = None,
        sha: str | None = None,
    ) -> None:
        entries: list[TreeEntry] = []
        directories: set[str] = set()
        for path in sorted(files):
            parts = path.split("/")
            for depth in range(1, len(parts)):
                directories.add("/".join(parts[:depth]))
            blob_sha = git_sha(files[path])
            self.blobs[blob_sha] = files[path]
            entries.append(
                TreeEntry(path=path, type="blob", sha=blob_sha, size=len(files[path].encode()))
            )
        entries.extend(
            TreeEntry(path=d, type="tree", sha=hashlib.sha1(d.encode()).hexdigest())
            for d in sorted(directories)
        )
        entries.extend(extra or [])
        self.tree = Tree(sha=sha or tree_sha(files), entries=entries)

    async def get_tree(self, owner: str, repo: str, ref: str, recursive: bool = True) -> Tree:
        self.tree_requests.append((owner, repo, ref))
        if self.fail_tree:
            msg = f"GitHub API error: {self.tree_error_status} tree"
            raise GitHubClientError(msg, status_code=self.tree_error_status)
        return self.tree

    async def get_blob(self, owner: str, repo: str, sha: str) -> Blob:
        self.blob_requests.append(sha)
        if sha in self.failing_shas:
            msg = f"GitHub API error: 500 blob {sha}"
            raise GitHubClientError(msg, status_code=500)
        content = self.blobs[sha]
        if self.encoding == "base64":
            payload = base64.encodebytes(content.encode()).decode()
        else:
            payload = content
        return Blob(sha=sha, content=payload, encoding=self.encoding, size=len(content))


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings isolated from the developer's environment."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return Settings(_env_file=None, github_token=TEST_TOKEN)


@pytest.fixture
def options() -> LoaderOptions:
    return LoaderOptions(owner="acme", repo="docs-site", directory="posts")


@pytest.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine]:
    """Create a test database engine with all tables."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
