"""Tests for evidence cache backends."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from themeprobe.errors import ParseError
from themeprobe.models import TreeEntry
from themeprobe.stores import FileEvidenceCache, MemoryEvidenceCache, slug_repo


def test_slug_repo_is_filesystem_safe() -> None:
    assert slug_repo("folke/tokyonight.nvim") == "folke__tokyonight.nvim"
    assert slug_repo("odd owner/we:ird") == "odd_owner__we_ird"


@pytest.mark.parametrize("backend", ["memory", "file"])
def test_cache_round_trip(tmp_path: Path, backend: str) -> None:
    cache = MemoryEvidenceCache() if backend == "memory" else FileEvidenceCache(tmp_path)
    tree = [TreeEntry("colors/foo.vim", "blob"), TreeEntry("colors", "tree")]

    async def scenario():
        assert await cache.get_text("o/foo") is None
        assert await cache.get_tree("o/foo") is None
        await cache.put_text("o/foo", "# Foo\n")
        await cache.put_tree("o/foo", tree)
        return await cache.get_text("o/foo"), await cache.get_tree("o/foo")

    text, cached_tree = asyncio.run(scenario())

    assert text == "# Foo\n"
    assert cached_tree == tree


def test_file_cache_layout(tmp_path: Path) -> None:
    cache = FileEvidenceCache(tmp_path)

    asyncio.run(cache.put_text("folke/tokyonight.nvim", "readme"))

    assert (tmp_path / "readme" / "folke__tokyonight.nvim.md").read_text(encoding="utf-8") == "readme"
    assert cache.tree_path("folke/tokyonight.nvim") == tmp_path / "tree" / "folke__tokyonight.nvim.json"


@pytest.mark.parametrize(
    "content",
    ["{broken", '{"version": 99, "tree": []}', '{"version": 1, "tree": [{"path": 3}]}'],
)
def test_corrupt_tree_entry_raises_parse_error(tmp_path: Path, content: str) -> None:
    cache = FileEvidenceCache(tmp_path)
    path = cache.tree_path("o/foo")
    path.parent.mkdir(parents=True)
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ParseError):
        asyncio.run(cache.get_tree("o/foo"))


def test_undecodable_readme_raises_parse_error(tmp_path: Path) -> None:
    cache = FileEvidenceCache(tmp_path)
    path = cache.text_path("o/foo")
    path.parent.mkdir(parents=True)
    path.write_bytes(b"\xff\xfe\xfa")

    with pytest.raises(ParseError):
        asyncio.run(cache.get_text("o/foo"))
