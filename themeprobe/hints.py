"""Manually curated overrides that supersede computed classification."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from .errors import ParseError
from .logging import get_logger
from .models import ClassificationResult, Hint, Signal, VariantModeResult
from .stores.registry import parse_category, parse_mode

HINT_SIGNAL_WEIGHT = 10
HINT_REASON = "Manual hint override"

logger = get_logger("hints")


class HintSet:
    """Ordered hints keyed by exact repository identity.

    When a repository appears more than once the first hint wins, so the
    document order is authoritative.
    """

    def __init__(self, hints: Iterable[Hint] = ()) -> None:
        self._hints: List[Hint] = []
        self._by_repo: Dict[str, Hint] = {}
        for hint in hints:
            self._hints.append(hint)
            if hint.repo in self._by_repo:
                logger.warning("Duplicate hint for %s ignored", hint.repo)
                continue
            self._by_repo[hint.repo] = hint

    @classmethod
    def from_document(cls, items: Sequence[Any]) -> "HintSet":
        return cls(parse_hint(item) for item in items)

    def __len__(self) -> int:
        return len(self._hints)

    def __iter__(self) -> Iterator[Hint]:
        return iter(self._hints)

    def get(self, repo: str) -> Optional[Hint]:
        return self._by_repo.get(repo)

    def apply_strategy(self, repo: str, result: ClassificationResult) -> ClassificationResult:
        """Return ``result`` overridden by the repo's strategy hint, if any."""
        hint = self.get(repo)
        if hint is None or hint.strategy is None:
            return result
        logger.debug("Hint overrides %s: %s -> %s", repo, result.category.value, hint.strategy.value)
        reason = f"{HINT_REASON}: {hint.reason}" if hint.reason else HINT_REASON
        return ClassificationResult(
            category=hint.strategy,
            confidence=1.0,
            signals=[*result.signals, Signal(hint.strategy, HINT_SIGNAL_WEIGHT, reason)],
            needs_escalation=False,
        )

    def apply_variant(self, repo: str, result: VariantModeResult) -> VariantModeResult:
        hint = self.get(repo)
        if hint is None:
            return result
        mode = hint.variant_modes.get(result.name)
        if mode is None:
            return result
        return replace(
            result,
            mode=mode,
            confidence=1.0,
            source="hint",
            reason=hint.reason or HINT_REASON,
        )


def parse_hint(item: Any) -> Hint:
    if not isinstance(item, dict) or not isinstance(item.get("repo"), str):
        raise ParseError(f"Malformed hint: {item!r}")
    repo = item["repo"]
    raw_strategy = item.get("strategy")
    strategy = (
        parse_category(raw_strategy, context=f"hint for {repo}")
        if raw_strategy is not None
        else None
    )
    raw_modes = item.get("variantModes") or {}
    if not isinstance(raw_modes, dict):
        raise ParseError(f"variantModes of hint for {repo} must be a mapping")
    variant_modes = {
        str(name): parse_mode(mode, context=f"hint for {repo}")
        for name, mode in raw_modes.items()
    }
    reason = item.get("reason")
    return Hint(
        repo=repo,
        strategy=strategy,
        variant_modes=variant_modes,
        reason=reason if isinstance(reason, str) else "",
    )


__all__ = ["HINT_REASON", "HINT_SIGNAL_WEIGHT", "HintSet", "parse_hint"]
