"""Tests for the GitHub REST evidence source."""

from __future__ import annotations

import asyncio
import base64

import httpx
import pytest

from themeprobe.config import GitHubConfig
from themeprobe.errors import FetchError
from themeprobe.github import GitHubSource
from themeprobe.models import TreeEntry


def _source(handler) -> GitHubSource:
    return GitHubSource("secret", api_url="https://api.test", transport=httpx.MockTransport(handler))


def _run(source: GitHubSource, method: str, repo: str):
    async def scenario():
        async with source:
            return await getattr(source, method)(repo)

    return asyncio.run(scenario())


def test_fetch_text_decodes_readme() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        content = base64.b64encode('require("foo").setup({})'.encode()).decode()
        return httpx.Response(200, json={"content": content[:10] + "\n" + content[10:]})

    text = _run(_source(handler), "fetch_text", "o/foo")

    assert text == 'require("foo").setup({})'
    assert seen == {"path": "/repos/o/foo/readme", "auth": "Bearer secret"}


def test_fetch_tree_lists_entries() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/o/foo/git/trees/HEAD"
        assert request.url.params["recursive"] == "1"
        return httpx.Response(
            200,
            json={
                "tree": [
                    {"path": "colors", "type": "tree"},
                    {"path": "colors/foo.vim", "type": "blob"},
                    {"path": 7},
                ]
            },
        )

    tree = _run(_source(handler), "fetch_tree", "o/foo")

    assert tree == [TreeEntry("colors", "tree"), TreeEntry("colors/foo.vim", "blob")]


@pytest.mark.parametrize(
    ("response", "message"),
    [
        (httpx.Response(404, json={"message": "Not Found"}), "not found"),
        (httpx.Response(403, text="API rate limit exceeded"), "rate limit exceeded"),
        (httpx.Response(401, text="Bad credentials"), "access denied"),
        (httpx.Response(502, text="bad gateway"), "HTTP 502"),
        (httpx.Response(200, text="<html>"), "invalid JSON payload"),
        (httpx.Response(200, json={"encoding": "base64"}), "README content missing"),
    ],
)
def test_failures_raise_fetch_error(response: httpx.Response, message: str) -> None:
    with pytest.raises(FetchError, match=message) as excinfo:
        _run(_source(lambda request: response), "fetch_text", "o/foo")

    assert excinfo.value.repo == "o/foo"


def test_transport_errors_raise_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError, match="request failed"):
        _run(_source(handler), "fetch_tree", "o/foo")


def test_from_config_reads_token_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("THEMEPROBE_TEST_TOKEN", "tok")
    source = GitHubSource.from_config(
        GitHubConfig(api_url="https://ghe.test/api/v3", token_env="THEMEPROBE_TEST_TOKEN")
    )

    try:
        assert source._client.headers["Authorization"] == "Bearer tok"
        assert str(source._client.base_url) == "https://ghe.test/api/v3/"
    finally:
        asyncio.run(source.aclose())
