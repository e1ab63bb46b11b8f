"""GitHub REST transport providing README text and file trees."""

from __future__ import annotations

import base64
import binascii
import os
from typing import Any, Dict, List, Optional

import httpx

from .config import DEFAULT_API_URL, GitHubConfig
from .errors import FetchError
from .logging import get_logger
from .models import TreeEntry

API_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}

logger = get_logger("github")


class GitHubSource:
    """Evidence source backed by the GitHub REST API.

    Retry and rate-limit policy live here, not in the cache layer: the
    underlying transport retries connection failures, and every other
    failure is raised as ``FetchError``.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = dict(API_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport or httpx.AsyncHTTPTransport(retries=2),
        )

    @classmethod
    def from_config(cls, config: GitHubConfig) -> "GitHubSource":
        token = os.environ.get(config.token_env) or os.environ.get("GH_TOKEN")
        if not token:
            logger.warning(
                "No GitHub token found in $%s; unauthenticated requests are heavily rate limited",
                config.token_env,
            )
        return cls(token, api_url=config.api_url, timeout=config.request_timeout)

    async def fetch_text(self, repo: str) -> str:
        data = await self._get_json(repo, f"/repos/{repo}/readme")
        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, str) or not content:
            raise FetchError(repo, "README content missing")
        try:
            raw = base64.b64decode(content.replace("\n", ""))
        except (binascii.Error, ValueError) as exc:
            raise FetchError(repo, f"README content is not valid base64: {exc}") from exc
        return raw.decode("utf-8", errors="replace")

    async def fetch_tree(self, repo: str) -> List[TreeEntry]:
        data = await self._get_json(
            repo, f"/repos/{repo}/git/trees/HEAD", params={"recursive": "1"}
        )
        items = data.get("tree") if isinstance(data, dict) else None
        if not isinstance(items, list):
            return []
        if data.get("truncated"):
            logger.debug("Tree listing for %s was truncated by the API", repo)
        entries: List[TreeEntry] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            path = item.get("path")
            kind = item.get("type")
            if isinstance(path, str) and isinstance(kind, str):
                entries.append(TreeEntry(path=path, kind=kind))
        return entries

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _get_json(
        self, repo: str, url: str, *, params: Optional[Dict[str, str]] = None
    ) -> Any:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise FetchError(repo, f"request failed: {exc}") from exc

        if response.status_code == 404:
            raise FetchError(repo, "not found")
        if response.status_code in (401, 403):
            detail = "rate limit exceeded" if "rate limit" in response.text.lower() else "access denied"
            raise FetchError(repo, f"{detail} (HTTP {response.status_code})")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(repo, f"HTTP {response.status_code}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(repo, f"invalid JSON payload: {exc}") from exc


__all__ = ["GitHubSource"]
