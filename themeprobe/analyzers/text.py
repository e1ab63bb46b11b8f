"""Extractor that reads activation hints out of README text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Tuple

from .base import SignalExtractor
from ..models import Category, Signal

_EXPLICIT_LOAD = re.compile(r"require\(\s*[\"'][^\"']+[\"']\s*\)\.load\s*\(", re.IGNORECASE)
_GENERIC_LOAD = re.compile(r"\.load\s*\(", re.IGNORECASE)
_REQUIRE = re.compile(r"require\s*\(", re.IGNORECASE)
_EXPLICIT_SETUP = re.compile(r"require\(\s*[\"'][^\"']+[\"']\s*\)\.setup\s*\(", re.IGNORECASE)
_SETUP_BLOCK = re.compile(r"setup\s*\(\s*\{[\s\S]*?\}\s*\)", re.IGNORECASE)
_BARE_COLORSCHEME = re.compile(r":?colorscheme\s+[a-z0-9_.-]+", re.IGNORECASE)
_QUOTED_COLORSCHEME = re.compile(
    r"vim\.cmd\s*\(\s*[\"']colorscheme\s+[a-z0-9_.-]+[\"']\s*\)", re.IGNORECASE
)
_CHAINED_COLORSCHEME = re.compile(
    r"vim\.cmd\.colorscheme\s*\(\s*[\"'][a-z0-9_.-]+[\"']\s*\)", re.IGNORECASE
)
_LEGACY_GLOBAL = re.compile(r"let\s+g:[a-z_]+\s*=", re.IGNORECASE)
_BACKGROUND = re.compile(r"background\s*=\s*[\"'](dark|light)[\"']", re.IGNORECASE)
_COLORSCHEME_WORD = re.compile(r"colorscheme", re.IGNORECASE)
_INIT_ORDERING = re.compile(r"before\s+loading|after\s+loading|must\s+set\s+global", re.IGNORECASE)


@dataclass(frozen=True)
class TextRule:
    """One independent pattern rule over README text."""

    category: Category
    weight: int
    reason: str
    matches: Callable[[str], bool]

    def apply(self, text: str) -> List[Signal]:
        if not self.matches(text):
            return []
        return [Signal(category=self.category, weight=self.weight, reason=self.reason)]


def _has(pattern: re.Pattern[str]) -> Callable[[str], bool]:
    return lambda text: pattern.search(text) is not None


def _all_of(*patterns: re.Pattern[str]) -> Callable[[str], bool]:
    return lambda text: all(p.search(text) for p in patterns)


TEXT_RULES: Tuple[TextRule, ...] = (
    TextRule(Category.LOAD, 8, "README contains require(...).load(...)", _has(_EXPLICIT_LOAD)),
    TextRule(Category.LOAD, 2, "README shows .load() pattern", _all_of(_GENERIC_LOAD, _REQUIRE)),
    TextRule(Category.SETUP, 6, "README contains require(...).setup(...)", _has(_EXPLICIT_SETUP)),
    TextRule(Category.SETUP, 2, "README shows setup({...}) options block", _has(_SETUP_BLOCK)),
    TextRule(Category.COLORSCHEME, 4, "README shows :colorscheme usage", _has(_BARE_COLORSCHEME)),
    TextRule(
        Category.COLORSCHEME,
        4,
        'README shows vim.cmd("colorscheme ...")',
        _has(_QUOTED_COLORSCHEME),
    ),
    TextRule(
        Category.COLORSCHEME,
        4,
        "README shows vim.cmd.colorscheme(...)",
        _has(_CHAINED_COLORSCHEME),
    ),
    TextRule(
        Category.COLORSCHEME,
        3,
        "README shows vim.g globals without require()",
        lambda text: bool(_LEGACY_GLOBAL.search(text)) and not _REQUIRE.search(text),
    ),
    TextRule(
        Category.FILE,
        2,
        "README suggests mode-dependent setup + colorscheme",
        _all_of(_BACKGROUND, _COLORSCHEME_WORD),
    ),
    TextRule(Category.FILE, 2, "README suggests custom init ordering", _has(_INIT_ORDERING)),
)


class TextSignalExtractor(SignalExtractor[str]):
    """Applies the ordered README pattern rules; every matching rule contributes."""

    source = "text"

    def __init__(self, rules: Tuple[TextRule, ...] = TEXT_RULES) -> None:
        self.rules = rules

    def extract(self, evidence: str) -> List[Signal]:
        signals: List[Signal] = []
        for rule in self.rules:
            signals.extend(rule.apply(evidence))
        return signals


__all__ = ["TEXT_RULES", "TextRule", "TextSignalExtractor"]
