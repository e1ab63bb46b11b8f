"""Extractor that infers the activation strategy from repository layout."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .base import SignalExtractor
from ..models import Category, Signal, TreeEntry

_LUA_MODULE = (
    re.compile(r"^lua/[^/]+/init\.lua$", re.IGNORECASE),
    re.compile(r"^lua/[^/]+\.lua$", re.IGNORECASE),
)
_COLORS_LUA = re.compile(r"^colors/.+\.lua$", re.IGNORECASE)
_COLORS_VIM = re.compile(r"^colors/.+\.vim$", re.IGNORECASE)
_PLUGIN_LUA = re.compile(r"^plugin/.+\.lua$", re.IGNORECASE)


@dataclass(frozen=True)
class Layout:
    """Presence of the path shapes that matter for strategy detection."""

    lua_module: bool
    colors_lua: bool
    colors_vim: bool
    plugin_lua: bool

    @property
    def has_colors_dir(self) -> bool:
        return self.colors_lua or self.colors_vim

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> "Layout":
        normalised = [path.replace("\\", "/").lstrip("/") for path in paths]
        return cls(
            lua_module=any(p.match(path) for path in normalised for p in _LUA_MODULE),
            colors_lua=any(_COLORS_LUA.match(path) for path in normalised),
            colors_vim=any(_COLORS_VIM.match(path) for path in normalised),
            plugin_lua=any(_PLUGIN_LUA.match(path) for path in normalised),
        )


class StructureSignalExtractor(SignalExtractor[Sequence[TreeEntry]]):
    """Emits signals from the presence of Lua modules and colors/ files."""

    source = "structure"

    def extract(self, evidence: Sequence[TreeEntry]) -> List[Signal]:
        layout = Layout.from_paths(entry.path for entry in evidence if entry.is_file)
        return self.signals_for(layout)

    @staticmethod
    def signals_for(layout: Layout) -> List[Signal]:
        signals: List[Signal] = []
        if layout.colors_vim and not layout.lua_module and not layout.colors_lua:
            signals.append(
                Signal(Category.COLORSCHEME, 6, "Repo has colors/*.vim without Lua module")
            )
        if layout.lua_module and layout.colors_lua:
            signals.append(Signal(Category.SETUP, 4, "Repo has Lua module + colors/*.lua"))
        if layout.colors_lua and not layout.lua_module:
            signals.append(
                Signal(Category.COLORSCHEME, 5, "Repo has colors/*.lua without Lua module")
            )
        if layout.lua_module and not layout.has_colors_dir:
            signals.append(Signal(Category.SETUP, 2, "Repo has Lua module without colors/"))
        if layout.plugin_lua and layout.lua_module:
            signals.append(Signal(Category.LOAD, 2, "Repo has lua/ + plugin/ layout"))
        if layout.colors_vim and layout.lua_module and not layout.colors_lua:
            signals.append(Signal(Category.COLORSCHEME, 4, "Repo has colors/*.vim + Lua module"))
        return signals


__all__ = ["Layout", "StructureSignalExtractor"]
