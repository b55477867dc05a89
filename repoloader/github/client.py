"""GitHub REST client for git tree and blob endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from repoloader.exceptions import GitHubClientError
from repoloader.github.base import Blob, Tree, TreeEntry

if TYPE_CHECKING:
    from repoloader.config import Settings

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"


def _repo_path(owner: str, repo: str) -> str:
    return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"


def _parse_tree(data: Any) -> Tree:
    """Build a Tree from a ``git/trees`` response body."""
    if not isinstance(data, dict):
        msg = "Tree response is not a JSON object"
        raise GitHubClientError(msg)
    try:
        entries = [
            TreeEntry(
                path=str(item["path"]),
                type=str(item["type"]),
                sha=item.get("sha") or None,
                size=int(item.get("size") or 0),
            )
            for item in data.get("tree", [])
        ]
        return Tree(sha=str(data["sha"]), entries=entries, truncated=bool(data.get("truncated")))
    except (KeyError, TypeError, ValueError) as exc:
        msg = f"Malformed tree response: {exc}"
        raise GitHubClientError(msg) from exc


def _parse_blob(data: Any) -> Blob:
    """Build a Blob from a ``git/blobs`` response body."""
    if not isinstance(data, dict):
        msg = "Blob response is not a JSON object"
        raise GitHubClientError(msg)
    try:
        return Blob(
            sha=str(data["sha"]),
            content=str(data["content"]),
            encoding=str(data.get("encoding", "base64")),
            size=int(data.get("size") or 0),
        )
    except (KeyError, TypeError, ValueError) as exc:
        msg = f"Malformed blob response: {exc}"
        raise GitHubClientError(msg) from exc


class GitHubClient:
    """Async client for the GitHub git database API.

    There is no retry or backoff here; a failed request raises
    ``GitHubClientError`` and the caller decides what to do with it.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, token: str) -> GitHubClient:
        return cls(token, api_url=settings.github_api_url, timeout=settings.request_timeout)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        try:
            resp = await self.client.get(url, params=params)
        except httpx.HTTPError as exc:
            msg = f"GitHub request failed: {url}: {exc}"
            raise GitHubClientError(msg) from exc
        if resp.status_code != 200:
            msg = f"GitHub API error: {resp.status_code} {url}: {resp.text[:200]}"
            raise GitHubClientError(msg, status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            msg = f"GitHub returned invalid JSON for {url}"
            raise GitHubClientError(msg, status_code=resp.status_code) from exc

    async def get_tree(self, owner: str, repo: str, ref: str, recursive: bool = True) -> Tree:
        """List the tree at ref (branch, tag or sha)."""
        url = f"{_repo_path(owner, repo)}/git/trees/{quote(ref, safe='')}"
        params = {"recursive": "1"} if recursive else None
        logger.debug("Listing tree %s/%s@%s", owner, repo, ref)
        return _parse_tree(await self._get_json(url, params=params))

    async def get_blob(self, owner: str, repo: str, sha: str) -> Blob:
        """Fetch one blob by sha."""
        url = f"{_repo_path(owner, repo)}/git/blobs/{quote(sha, safe='')}"
        logger.debug("Fetching blob %s from %s/%s", sha, owner, repo)
        return _parse_blob(await self._get_json(url))
