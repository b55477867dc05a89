"""Tests for the GitHub REST client."""

from __future__ import annotations

import base64
from collections.abc import Callable

import httpx
import pytest

from repoloader.config import Settings
from repoloader.exceptions import GitHubClientError
from repoloader.github.base import TreeSource
from repoloader.github.client import GITHUB_API_VERSION, GitHubClient

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler) -> GitHubClient:
    return GitHubClient("tok", transport=httpx.MockTransport(handler))


TREE_BODY = {
    "sha": "abc",
    "truncated": False,
    "tree": [
        {"path": "posts", "type": "tree", "sha": "d1"},
        {"path": "posts/a.md", "type": "blob", "sha": "f1", "size": 5},
        {"path": "vendor/lib", "type": "commit", "sha": "c1"},
    ],
}


class TestGetTree:
    async def test_request_shape(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=TREE_BODY)

        async with _client(handler) as client:
            tree = await client.get_tree("acme", "docs-site", "feature/x")

        request = seen[0]
        assert request.url.raw_path == b"/repos/acme/docs-site/git/trees/feature%2Fx?recursive=1"
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["Accept"] == "application/vnd.github+json"
        assert request.headers["X-GitHub-Api-Version"] == GITHUB_API_VERSION
        assert tree.sha == "abc"
        assert [e.path for e in tree.entries if e.is_file] == ["posts/a.md"]
        assert tree.entries[1].size == 5
        assert not tree.truncated

    async def test_non_recursive_has_no_param(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"sha": "abc", "tree": []})

        async with _client(handler) as client:
            await client.get_tree("acme", "site", "main", recursive=False)
        assert "recursive" not in seen[0].url.params

    async def test_truncated_flag(self) -> None:
        body = {**TREE_BODY, "truncated": True}
        async with _client(lambda r: httpx.Response(200, json=body)) as client:
            tree = await client.get_tree("acme", "site", "main")
        assert tree.truncated

    async def test_http_error_carries_status(self) -> None:
        async with _client(lambda r: httpx.Response(404, json={"message": "Not Found"})) as client:
            with pytest.raises(GitHubClientError) as exc_info:
                await client.get_tree("acme", "missing", "main")
        assert exc_info.value.status_code == 404
        assert not exc_info.value.is_rate_limited

    async def test_rate_limit(self) -> None:
        async with _client(lambda r: httpx.Response(403, text="rate limit exceeded")) as client:
            with pytest.raises(GitHubClientError) as exc_info:
                await client.get_tree("acme", "site", "main")
        assert exc_info.value.is_rate_limited

    async def test_malformed_payload(self) -> None:
        body = {"sha": "abc", "tree": [{"type": "blob"}]}
        async with _client(lambda r: httpx.Response(200, json=body)) as client:
            with pytest.raises(GitHubClientError, match="Malformed tree"):
                await client.get_tree("acme", "site", "main")

    async def test_invalid_json(self) -> None:
        async with _client(lambda r: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(GitHubClientError, match="invalid JSON"):
                await client.get_tree("acme", "site", "main")

    async def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(GitHubClientError, match="request failed") as exc_info:
                await client.get_tree("acme", "site", "main")
        assert exc_info.value.status_code is None


class TestGetBlob:
    async def test_blob(self) -> None:
        payload = base64.encodebytes(b"# Hello\n").decode()

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/repos/acme/site/git/blobs/f1"
            return httpx.Response(
                200, json={"sha": "f1", "content": payload, "encoding": "base64", "size": 8}
            )

        async with _client(handler) as client:
            blob = await client.get_blob("acme", "site", "f1")
        assert (blob.sha, blob.content, blob.encoding, blob.size) == ("f1", payload, "base64", 8)

    async def test_blob_without_content(self) -> None:
        async with _client(lambda r: httpx.Response(200, json={"sha": "f1"})) as client:
            with pytest.raises(GitHubClientError, match="Malformed blob"):
                await client.get_blob("acme", "site", "f1")


class TestConstruction:
    def test_satisfies_tree_source(self) -> None:
        assert isinstance(GitHubClient("tok"), TreeSource)

    async def test_from_settings(self) -> None:
        settings = Settings(
            _env_file=None, github_api_url="https://ghe.example.com/api/v3/", request_timeout=5
        )
        client = GitHubClient.from_settings(settings, "tok")
        try:
            assert client.api_url == "https://ghe.example.com/api/v3"
            assert client.client.timeout.read == 5
        finally:
            await client.aclose()
