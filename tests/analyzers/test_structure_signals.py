"""Tests for repository layout signal extraction."""

from __future__ import annotations

from typing import List, Tuple

from themeprobe.analyzers import Layout, StructureSignalExtractor
from themeprobe.models import Category, TreeEntry


def _signals(*paths: str) -> List[Tuple[Category, int]]:
    tree = [TreeEntry(path=path, kind="blob") for path in paths]
    return [(s.category, s.weight) for s in StructureSignalExtractor().extract(tree)]


def test_legacy_colors_script_only() -> None:
    assert _signals("colors/foo.vim", "README.md") == [(Category.COLORSCHEME, 6)]


def test_lua_module_with_colors_lua_is_setup() -> None:
    assert _signals("lua/foo/init.lua", "colors/foo.lua") == [(Category.SETUP, 4)]


def test_colors_lua_without_module() -> None:
    assert _signals("colors/foo.lua") == [(Category.COLORSCHEME, 5)]


def test_lua_module_alone() -> None:
    assert _signals("lua/foo.lua") == [(Category.SETUP, 2)]


def test_lua_module_with_plugin_dir() -> None:
    assert _signals("lua/foo/init.lua", "plugin/foo.lua") == [
        (Category.SETUP, 2),
        (Category.LOAD, 2),
    ]


def test_lua_module_with_legacy_colors_script() -> None:
    assert _signals("lua/foo/init.lua", "colors/foo.vim") == [(Category.COLORSCHEME, 4)]


def test_directories_are_ignored() -> None:
    tree = [TreeEntry(path="colors/foo.vim", kind="tree")]

    assert StructureSignalExtractor().extract(tree) == []


def test_layout_normalises_separators() -> None:
    layout = Layout.from_paths(["colors\\foo.vim", "/lua/foo/init.lua"])

    assert layout.colors_vim
    assert layout.lua_module
    assert layout.has_colors_dir
