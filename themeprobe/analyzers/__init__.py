"""Signal extractors over README text and repository layout."""

from .base import SignalExtractor
from .structure import Layout, StructureSignalExtractor
from .text import TEXT_RULES, TextRule, TextSignalExtractor

__all__ = [
    "Layout",
    "SignalExtractor",
    "StructureSignalExtractor",
    "TEXT_RULES",
    "TextRule",
    "TextSignalExtractor",
]
