"""Read-through evidence fetching on top of a cache backend."""

from __future__ import annotations

from typing import List, Protocol

from .errors import FetchError, ParseError
from .logging import get_logger
from .models import TreeEntry
from .stores.evidence_cache import EvidenceCache


class EvidenceSource(Protocol):
    """Remote capability that retrieves raw repository evidence.

    Implementations must raise ``FetchError`` for every retrieval failure.
    """

    async def fetch_text(self, repo: str) -> str:
        ...

    async def fetch_tree(self, repo: str) -> List[TreeEntry]:
        ...


class CachedFetcher:
    """Serves evidence from the cache, fetching and storing on a miss."""

    def __init__(
        self,
        source: EvidenceSource,
        cache: EvidenceCache,
        *,
        no_cache: bool = False,
    ) -> None:
        self.source = source
        self.cache = cache
        self.no_cache = no_cache
        self.logger = get_logger("fetch")

    async def fetch_text(self, repo: str) -> str:
        if not self.no_cache:
            try:
                cached = await self.cache.get_text(repo)
            except ParseError as exc:
                self.logger.debug("Discarding cached README for %s: %s", repo, exc)
                cached = None
            if cached is not None:
                self.logger.debug("README cache hit for %s", repo)
                return cached

        text = await self._call(repo, self.source.fetch_text)
        await self.cache.put_text(repo, text)
        return text

    async def fetch_tree(self, repo: str) -> List[TreeEntry]:
        if not self.no_cache:
            try:
                cached = await self.cache.get_tree(repo)
            except ParseError as exc:
                self.logger.debug("Discarding cached tree for %s: %s", repo, exc)
                cached = None
            if cached is not None:
                self.logger.debug("Tree cache hit for %s", repo)
                return cached

        tree = await self._call(repo, self.source.fetch_tree)
        await self.cache.put_tree(repo, tree)
        return tree

    async def _call(self, repo, fetch):
        self.logger.debug("Fetching %s for %s", fetch.__name__, repo)
        try:
            return await fetch(repo)
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(repo, str(exc) or exc.__class__.__name__) from exc


__all__ = ["CachedFetcher", "EvidenceSource"]
