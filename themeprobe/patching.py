"""Diffing detection results against the registry store and applying them."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from .classifier import CONFIDENCE_THRESHOLD
from .logging import get_logger
from .models import Category, DetectionRow, PatchEntry, RowStatus, ThemeEntry
from .stores.registry import RegistryStore, build_repo_index

APPLY_THRESHOLD = CONFIDENCE_THRESHOLD

_PATCHABLE = (RowStatus.MISMATCH, RowStatus.MISSING_META)

logger = get_logger("patching")


def compute_patch(
    rows: Iterable[DetectionRow], *, threshold: float = APPLY_THRESHOLD
) -> List[PatchEntry]:
    """Return high-confidence strategy updates for rows that disagree with the store."""
    patch = [
        PatchEntry(repo=row.repo, category=row.detected_strategy, confidence=row.confidence)
        for row in rows
        if row.status in _PATCHABLE
        and row.detected_strategy is not Category.UNKNOWN
        and row.confidence >= threshold
    ]
    patch.sort(key=lambda entry: entry.repo.lower())
    return patch


def apply_patch(
    store: RegistryStore, patch: Sequence[PatchEntry], inventory: Sequence[ThemeEntry]
) -> RegistryStore:
    """Return a new store with ``patch`` applied; ``store`` is left untouched.

    Existing entries only have ``meta.strategy.type`` rewritten. Repositories
    without an entry get a minimal one built from the inventory; a repository
    absent from the inventory is skipped.
    """
    updates: Dict[str, Category] = {entry.repo: entry.category for entry in patch}
    overrides = copy.deepcopy(store.overrides)
    existing = set()

    for entry in overrides:
        repo = entry.get("repo")
        if not isinstance(repo, str):
            continue
        existing.add(repo)
        category = updates.get(repo)
        if category is None:
            continue
        meta = entry.setdefault("meta", {})
        strategy = meta.setdefault("strategy", {})
        strategy["type"] = category.value

    repo_index = build_repo_index(inventory)
    for entry in patch:
        if entry.repo in existing:
            continue
        themes = repo_index.get(entry.repo)
        if not themes:
            logger.warning("Skipping patch for %s: not present in the theme inventory", entry.repo)
            continue
        theme = themes[0]
        synthesised: Dict[str, object] = {"name": theme.name, "repo": entry.repo}
        if theme.colorscheme:
            synthesised["colorscheme"] = theme.colorscheme
        synthesised["meta"] = {"strategy": {"type": entry.category.value}}
        overrides.append(synthesised)
        existing.add(entry.repo)

    overrides.sort(key=lambda item: str(item.get("name") or "").lower())
    return RegistryStore(
        overrides=overrides,
        builtin=copy.deepcopy(store.builtin),
        layout=store.layout,
        extra=copy.deepcopy(store.extra),
    )


@dataclass
class VariantModeChanges:
    """Outcome of copying detected variant modes into the store."""

    store: RegistryStore
    themes: int = 0
    details: List[str] = field(default_factory=list)

    @property
    def changes(self) -> int:
        return len(self.details)


def apply_variant_modes(store: RegistryStore, rows: Iterable[DetectionRow]) -> VariantModeChanges:
    """Fill in ``mode`` for store variants that lack one, using detected modes."""
    detected: Dict[str, Dict[str, str]] = {}
    for row in rows:
        if row.variants is None:
            continue
        modes = {item.name: item.mode.value for item in row.variants.detected if item.mode}
        if modes:
            detected[row.repo] = modes

    overrides = copy.deepcopy(store.overrides)
    outcome = VariantModeChanges(store=store)
    for theme in overrides:
        modes = detected.get(theme.get("repo"))
        variants = theme.get("variants")
        if not modes or not isinstance(variants, list):
            continue
        changed = False
        for variant in variants:
            if not isinstance(variant, dict) or variant.get("mode"):
                continue
            mode = modes.get(variant.get("name"))
            if mode is None:
                continue
            variant["mode"] = mode
            outcome.details.append(f"{theme['repo']}:{variant['name']} -> {mode}")
            changed = True
        if changed:
            outcome.themes += 1

    outcome.store = RegistryStore(
        overrides=overrides,
        builtin=copy.deepcopy(store.builtin),
        layout=store.layout,
        extra=copy.deepcopy(store.extra),
    )
    return outcome


__all__ = [
    "APPLY_THRESHOLD",
    "VariantModeChanges",
    "apply_patch",
    "apply_variant_modes",
    "compute_patch",
]
