"""Light/dark classification of theme variant names."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from .hints import HintSet
from .models import Mode, ThemeEntry, VariantModeResult, VariantReport

FAMILY_PREFIXES = ("base16", "base24")

_FAMILY_LIGHT = re.compile(rf"^(?:{'|'.join(FAMILY_PREFIXES)})-.+-light$")
_FAMILY_ANY = re.compile(rf"^(?:{'|'.join(FAMILY_PREFIXES)})-.+$")

# Light words are checked first so names like "tokyonight-day" resolve to light.
LIGHT_KEYWORDS: Tuple[str, ...] = (
    "light",
    "day",
    "sun",
    "latte",
    "bright",
    "white",
    "paper",
    "cream",
    "morning",
    "dawn",
    "clear",
    "ivory",
    "operandi",
    "written",
)
DARK_KEYWORDS: Tuple[str, ...] = (
    "dark",
    "night",
    "moon",
    "storm",
    "mocha",
    "frappe",
    "macchiato",
    "deep",
    "black",
    "shadow",
    "midnight",
    "abyss",
    "void",
    "dusk",
    "dim",
    "cool",
    "warm",
)

FAMILY_CONFIDENCE = 0.9
KEYWORD_CONFIDENCE = 0.7

SOURCE_PATTERN = "pattern"
SOURCE_HINT = "hint"
SOURCE_UNKNOWN = "unknown"


class VariantModeClassifier:
    """Classifies variant names by family pattern, then by keyword."""

    def classify(self, name: str) -> VariantModeResult:
        lowered = name.lower()
        if _FAMILY_LIGHT.match(lowered):
            return VariantModeResult(
                name, Mode.LIGHT, FAMILY_CONFIDENCE, SOURCE_PATTERN, "family name ends in -light"
            )
        if _FAMILY_ANY.match(lowered):
            return VariantModeResult(
                name, Mode.DARK, FAMILY_CONFIDENCE, SOURCE_PATTERN, "family name without -light"
            )
        keyword = _first_keyword(lowered, LIGHT_KEYWORDS)
        if keyword:
            return VariantModeResult(
                name, Mode.LIGHT, KEYWORD_CONFIDENCE, SOURCE_PATTERN, f"name contains '{keyword}'"
            )
        keyword = _first_keyword(lowered, DARK_KEYWORDS)
        if keyword:
            return VariantModeResult(
                name, Mode.DARK, KEYWORD_CONFIDENCE, SOURCE_PATTERN, f"name contains '{keyword}'"
            )
        return VariantModeResult(name, None, 0.0, SOURCE_UNKNOWN)

    def classify_for_repo(
        self, repo: str, name: str, hints: HintSet | None = None
    ) -> VariantModeResult:
        result = self.classify(name)
        if hints is not None:
            result = hints.apply_variant(repo, result)
        return result

    def report(
        self, repo: str, themes: Iterable[ThemeEntry], hints: HintSet | None = None
    ) -> Optional[VariantReport]:
        """Classify every variant of ``repo``'s themes; ``None`` when there are none."""
        detected: List[VariantModeResult] = []
        seen = set()
        for theme in themes:
            for variant in theme.variants:
                if variant.name in seen:
                    continue
                seen.add(variant.name)
                detected.append(self.classify_for_repo(repo, variant.name, hints))
        if not detected:
            return None
        with_mode = sum(1 for item in detected if item.mode is not None)
        return VariantReport(total=len(detected), with_mode=with_mode, detected=detected)


def _first_keyword(name: str, keywords: Tuple[str, ...]) -> Optional[str]:
    for keyword in keywords:
        if keyword in name:
            return keyword
    return None


__all__ = [
    "DARK_KEYWORDS",
    "FAMILY_PREFIXES",
    "LIGHT_KEYWORDS",
    "VariantModeClassifier",
]
