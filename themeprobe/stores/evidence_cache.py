"""Cache backends for fetched repository evidence."""

from __future__ import annotations

import asyncio
import json
import os
import re
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import ParseError
from ..models import TreeEntry

_CACHE_VERSION = 1
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def slug_repo(repo: str) -> str:
    """Return a filesystem-safe cache key for ``owner/name``."""
    return _UNSAFE_CHARS.sub("_", repo.replace("/", "__", 1))


class EvidenceCache(ABC):
    """Asynchronous storage for README text and file listings.

    ``get_*`` returns ``None`` on a miss and raises ``ParseError`` when a
    stored blob exists but cannot be decoded.
    """

    @abstractmethod
    async def get_text(self, repo: str) -> Optional[str]:
        ...

    @abstractmethod
    async def put_text(self, repo: str, text: str) -> None:
        ...

    @abstractmethod
    async def get_tree(self, repo: str) -> Optional[List[TreeEntry]]:
        ...

    @abstractmethod
    async def put_tree(self, repo: str, tree: Sequence[TreeEntry]) -> None:
        ...


class MemoryEvidenceCache(EvidenceCache):
    """In-process cache, mainly for tests and one-shot runs."""

    def __init__(self) -> None:
        self._texts: Dict[str, str] = {}
        self._trees: Dict[str, Tuple[TreeEntry, ...]] = {}

    async def get_text(self, repo: str) -> Optional[str]:
        return self._texts.get(slug_repo(repo))

    async def put_text(self, repo: str, text: str) -> None:
        self._texts[slug_repo(repo)] = text

    async def get_tree(self, repo: str) -> Optional[List[TreeEntry]]:
        tree = self._trees.get(slug_repo(repo))
        return list(tree) if tree is not None else None

    async def put_tree(self, repo: str, tree: Sequence[TreeEntry]) -> None:
        self._trees[slug_repo(repo)] = tuple(tree)


class FileEvidenceCache(EvidenceCache):
    """Stores evidence under ``<root>/readme/<slug>.md`` and ``<root>/tree/<slug>.json``."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def text_path(self, repo: str) -> Path:
        return self._root / "readme" / f"{slug_repo(repo)}.md"

    def tree_path(self, repo: str) -> Path:
        return self._root / "tree" / f"{slug_repo(repo)}.json"

    async def get_text(self, repo: str) -> Optional[str]:
        return await asyncio.to_thread(self._read_text, self.text_path(repo))

    async def put_text(self, repo: str, text: str) -> None:
        await asyncio.to_thread(_write_atomic, self.text_path(repo), text)

    async def get_tree(self, repo: str) -> Optional[List[TreeEntry]]:
        raw = await asyncio.to_thread(self._read_text, self.tree_path(repo))
        if raw is None:
            return None
        return _tree_from_json(raw, self.tree_path(repo))

    async def put_tree(self, repo: str, tree: Sequence[TreeEntry]) -> None:
        payload = {
            "version": _CACHE_VERSION,
            "tree": [{"path": entry.path, "type": entry.kind} for entry in tree],
        }
        await asyncio.to_thread(
            _write_atomic, self.tree_path(repo), json.dumps(payload, indent=2) + "\n"
        )

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _read_text(path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise ParseError(f"Unreadable cache entry {path}: {exc}") from exc


def _tree_from_json(raw: str, path: Path) -> List[TreeEntry]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Corrupt cache entry {path}: {exc}") from exc
    if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
        raise ParseError(f"Unsupported cache entry format in {path}")
    items = data.get("tree")
    if not isinstance(items, list):
        raise ParseError(f"Cache entry {path} has no tree listing")
    entries: List[TreeEntry] = []
    for item in items:
        if (
            not isinstance(item, dict)
            or not isinstance(item.get("path"), str)
            or not isinstance(item.get("type"), str)
        ):
            raise ParseError(f"Malformed tree item in {path}")
        entries.append(TreeEntry(path=item["path"], kind=item["type"]))
    return entries


def _write_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # Unique temp name so concurrent writers of the same entry never interleave.
    tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    tmp.write_text(content, encoding="utf-8")
    os.replace(tmp, path)


__all__ = [
    "EvidenceCache",
    "FileEvidenceCache",
    "MemoryEvidenceCache",
    "slug_repo",
]
