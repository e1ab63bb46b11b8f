"""Core data models shared across themeprobe components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union


class Category(str, Enum):
    """Activation strategy of a theme repository."""

    SETUP = "setup"
    LOAD = "load"
    COLORSCHEME = "colorscheme"
    FILE = "file"
    UNKNOWN = "unknown"


class Mode(str, Enum):
    """Visual mode of a theme variant."""

    LIGHT = "light"
    DARK = "dark"


class RowStatus(str, Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    MISSING_META = "missing-meta"
    ERROR = "error"


MISSING = "missing"

CurrentStrategy = Union[Category, str]


@dataclass(frozen=True)
class Signal:
    """Weighted piece of evidence contributing to a category tally."""

    category: Category
    weight: int
    reason: str

    def __post_init__(self) -> None:
        if not isinstance(self.category, Category):
            raise TypeError(f"Signal category must be a Category, got {self.category!r}")
        if self.weight <= 0:
            raise ValueError("Signal weight must be positive")


@dataclass(frozen=True)
class TreeEntry:
    """One path from a repository file listing."""

    path: str
    kind: str

    @property
    def is_file(self) -> bool:
        return self.kind == "blob"


@dataclass
class Variant:
    name: str
    colorscheme: Optional[str] = None
    mode: Optional[Mode] = None


@dataclass
class ThemeEntry:
    """A theme as inventoried upstream."""

    name: str
    repo: Optional[str] = None
    colorscheme: Optional[str] = None
    variants: List[Variant] = field(default_factory=list)


@dataclass
class ClassificationResult:
    category: Category
    confidence: float
    signals: List[Signal] = field(default_factory=list)
    needs_escalation: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence out of range: {self.confidence}")


@dataclass(frozen=True)
class Hint:
    """Manually curated override for a single repository."""

    repo: str
    strategy: Optional[Category] = None
    variant_modes: Dict[str, Mode] = field(default_factory=dict)
    reason: str = ""


@dataclass
class VariantModeResult:
    name: str
    mode: Optional[Mode]
    confidence: float
    source: str
    reason: Optional[str] = None


@dataclass
class VariantReport:
    """Per-repository aggregate of variant mode detection."""

    total: int
    with_mode: int
    detected: List[VariantModeResult] = field(default_factory=list)

    @property
    def coverage(self) -> float:
        if self.total == 0:
            return 1.0
        return self.with_mode / self.total


@dataclass
class DetectionRow:
    """One repository's outcome for a detection run."""

    repo: str
    theme_names: List[str]
    current_strategy: CurrentStrategy
    detected_strategy: Category
    confidence: float
    status: RowStatus
    signals: List[Signal] = field(default_factory=list)
    error: Optional[str] = None
    variants: Optional[VariantReport] = None


@dataclass(frozen=True)
class PatchEntry:
    repo: str
    category: Category
    confidence: float


__all__ = [
    "Category",
    "ClassificationResult",
    "CurrentStrategy",
    "DetectionRow",
    "Hint",
    "MISSING",
    "Mode",
    "PatchEntry",
    "RowStatus",
    "Signal",
    "ThemeEntry",
    "TreeEntry",
    "Variant",
    "VariantModeResult",
    "VariantReport",
]
