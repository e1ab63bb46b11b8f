"""Aggregates weighted signals into an activation-strategy decision.

The classifier walks ``TEXT_ONLY -> [ESCALATE?] -> TEXT_PLUS_STRUCTURE ->
HINT_CHECK -> FINAL``. It is pure: callers fetch the evidence, and the
classifier only folds already-extracted signals into a result.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .analyzers import StructureSignalExtractor, TextSignalExtractor
from .hints import HintSet
from .logging import get_logger
from .models import Category, ClassificationResult, Signal, TreeEntry

#: Escalation and apply cutoff. An older revision used 0.7; 0.9 supersedes it.
CONFIDENCE_THRESHOLD = 0.9

#: Structure evidence alone is treated as moderate-strength.
STRUCTURE_CONFIDENCE = 0.5

LOAD_TIE_BREAK = 2
SETUP_TIE_BREAK = 3

# Declaration order doubles as the tie order when tallies are equal.
RANKED_CATEGORIES: Tuple[Category, ...] = (
    Category.SETUP,
    Category.LOAD,
    Category.COLORSCHEME,
    Category.FILE,
)

Tally = Dict[Category, int]


def tally_signals(signals: Iterable[Signal]) -> Tally:
    tally: Tally = {category: 0 for category in Category}
    for signal in signals:
        # KeyError here means a category was added without updating the tally.
        tally[signal.category] += signal.weight
    return tally


def apply_tie_breaks(tally: Tally) -> Tally:
    adjusted = dict(tally)
    if adjusted[Category.LOAD] > 0 and adjusted[Category.SETUP] > 0:
        if adjusted[Category.LOAD] >= adjusted[Category.SETUP]:
            adjusted[Category.LOAD] += LOAD_TIE_BREAK
    if adjusted[Category.SETUP] > 0 and adjusted[Category.COLORSCHEME] > 0:
        adjusted[Category.SETUP] += SETUP_TIE_BREAK
    return adjusted


def rank(tally: Tally) -> List[Tuple[Category, int]]:
    return sorted(
        ((category, tally[category]) for category in RANKED_CATEGORIES),
        key=lambda item: item[1],
        reverse=True,
    )


def score(tally: Tally) -> Tuple[Category, float]:
    """Return the winning category and its confidence."""
    ranked = rank(tally)
    winner, top = ranked[0]
    runner_up = ranked[1][1]
    if top == 0:
        return Category.UNKNOWN, 0.0
    # Divide once so a margin-adjusted tally of 9 scores exactly 0.9.
    confidence = min(1.0, (top + max(0, top - runner_up)) / 10)
    return winner, confidence


class StrategyClassifier:
    """Decides a repository's activation strategy from text and structure signals."""

    def __init__(
        self,
        *,
        threshold: float = CONFIDENCE_THRESHOLD,
        text_extractor: TextSignalExtractor | None = None,
        structure_extractor: StructureSignalExtractor | None = None,
    ) -> None:
        self.threshold = threshold
        self.text_extractor = text_extractor or TextSignalExtractor()
        self.structure_extractor = structure_extractor or StructureSignalExtractor()
        self.logger = get_logger("classifier")

    def classify_text(self, text: str) -> ClassificationResult:
        signals = self.text_extractor.extract(text)
        category, confidence = score(apply_tie_breaks(tally_signals(signals)))
        return ClassificationResult(
            category=category,
            confidence=confidence,
            signals=signals,
            needs_escalation=category is Category.UNKNOWN or confidence < self.threshold,
        )

    def classify_structure(self, tree: Sequence[TreeEntry]) -> Optional[ClassificationResult]:
        """Return the structure-only verdict, or ``None`` when the layout says nothing."""
        signals = self.structure_extractor.extract(tree)
        if not signals:
            return None
        category, _ = score(tally_signals(signals))
        return ClassificationResult(
            category=category,
            confidence=STRUCTURE_CONFIDENCE,
            signals=signals,
        )

    def escalate(
        self, text_result: ClassificationResult, tree: Sequence[TreeEntry]
    ) -> ClassificationResult:
        """Merge structure evidence into a text result that needed escalation."""
        structure = self.classify_structure(tree)
        if structure is None:
            return ClassificationResult(
                category=text_result.category,
                confidence=text_result.confidence,
                signals=list(text_result.signals),
            )

        merged = [*text_result.signals, *structure.signals]
        replaces = structure.category is not Category.UNKNOWN and (
            text_result.category is Category.UNKNOWN
            or text_result.confidence < self.threshold
        )
        if replaces:
            self.logger.debug(
                "Structure evidence replaces %s (%.2f) with %s",
                text_result.category.value,
                text_result.confidence,
                structure.category.value,
            )
            return ClassificationResult(
                category=structure.category,
                confidence=max(text_result.confidence, structure.confidence),
                signals=merged,
            )
        return ClassificationResult(
            category=text_result.category,
            confidence=text_result.confidence,
            signals=merged,
        )

    def finalize(
        self, repo: str, result: ClassificationResult, hints: HintSet | None
    ) -> ClassificationResult:
        if hints is None:
            return result
        return hints.apply_strategy(repo, result)

    def classify(
        self,
        repo: str,
        text: str,
        tree: Sequence[TreeEntry] | None = None,
        hints: HintSet | None = None,
    ) -> ClassificationResult:
        """Run the full state machine over evidence that is already in hand."""
        result = self.classify_text(text)
        if result.needs_escalation and tree is not None:
            result = self.escalate(result, tree)
        return self.finalize(repo, result, hints)


__all__ = [
    "CONFIDENCE_THRESHOLD",
    "RANKED_CATEGORIES",
    "STRUCTURE_CONFIDENCE",
    "StrategyClassifier",
    "apply_tie_breaks",
    "rank",
    "score",
    "tally_signals",
]
