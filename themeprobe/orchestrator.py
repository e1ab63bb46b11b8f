"""Batch detection across theme repositories."""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .classifier import StrategyClassifier
from .config import DEFAULT_CONCURRENCY
from .errors import ParseError, ThemeLookupError, UsageError
from .fetch import CachedFetcher
from .hints import HintSet
from .logging import get_logger
from .models import (
    MISSING,
    Category,
    CurrentStrategy,
    DetectionRow,
    RowStatus,
    ThemeEntry,
)
from .stores.registry import RegistryStore, build_repo_index, find_theme
from .variants import VariantModeClassifier

PROGRESS_INTERVAL = 0.05

_REPO_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class ProgressUpdate:
    completed: int
    total: int
    repo: str
    status: RowStatus


ProgressCallback = Callable[[ProgressUpdate], None]


class ProgressThrottle:
    """Forwards progress at most once per ``min_interval``; the last update always passes."""

    def __init__(
        self,
        callback: ProgressCallback,
        *,
        min_interval: float = PROGRESS_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.callback = callback
        self.min_interval = min_interval
        self.clock = clock
        self._last: Optional[float] = None

    def __call__(self, update: ProgressUpdate) -> None:
        now = self.clock()
        final = update.completed >= update.total
        if not final and self._last is not None and now - self._last < self.min_interval:
            return
        self._last = now
        self.callback(update)


def validate_repo(repo: str) -> str:
    if not _REPO_PATTERN.match(repo):
        raise UsageError(f"Invalid repository identifier {repo!r}; expected owner/name")
    return repo


class DetectionOrchestrator:
    """Runs detection for many repositories under a concurrency ceiling."""

    def __init__(
        self,
        fetcher: CachedFetcher,
        store: RegistryStore,
        inventory: Sequence[ThemeEntry],
        *,
        classifier: StrategyClassifier | None = None,
        variant_classifier: VariantModeClassifier | None = None,
        hints: HintSet | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        exclude: Iterable[str] = (),
        progress: ProgressCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.fetcher = fetcher
        self.store = store
        self.inventory = list(inventory)
        self.classifier = classifier or StrategyClassifier()
        self.variant_classifier = variant_classifier or VariantModeClassifier()
        self.hints = hints or HintSet()
        self.concurrency = concurrency
        self.exclude = frozenset(exclude)
        self.progress = progress
        self.clock = clock
        self.repo_index: Dict[str, List[ThemeEntry]] = build_repo_index(self.inventory)
        self.logger = get_logger("orchestrator")

    def select_repos(self, *, sample: int | None = None) -> List[str]:
        """Inventory repositories minus the deny list, optionally capped."""
        repos = sorted(repo for repo in self.repo_index if repo not in self.exclude)
        skipped = len(self.repo_index) - len(repos)
        if skipped:
            self.logger.debug("Excluded %d repositories", skipped)
        if sample is not None and sample > 0:
            repos = repos[:sample]
        return repos

    def resolve_repo(self, repo: str) -> str:
        validate_repo(repo)
        if repo not in self.repo_index:
            raise ThemeLookupError(f"Repository not in inventory: {repo}")
        return repo

    def resolve_theme(self, name: str) -> str:
        theme = find_theme(self.inventory, name)
        if not theme.repo:
            raise UsageError(f"Theme {name} has no repo")
        return validate_repo(theme.repo)

    async def detect_repo(self, repo: str) -> DetectionRow:
        """Classify one repository; any failure becomes an ``error`` row."""
        themes = self.repo_index.get(repo, [])
        names = list(dict.fromkeys(theme.name for theme in themes))
        try:
            text = await self.fetcher.fetch_text(repo)
            result = self.classifier.classify_text(text)
            if result.needs_escalation:
                self.logger.debug(
                    "Escalating %s (%s, %.2f)", repo, result.category.value, result.confidence
                )
                tree = await self.fetcher.fetch_tree(repo)
                result = self.classifier.escalate(result, tree)
            result = self.classifier.finalize(repo, result, self.hints)

            current = self.store.current_strategy(repo)
            row = DetectionRow(
                repo=repo,
                theme_names=names,
                current_strategy=current,
                detected_strategy=result.category,
                confidence=round(result.confidence, 2),
                status=_status_for(current, result.category),
                signals=list(result.signals),
            )
        except Exception as exc:
            self.logger.warning("Detection failed for %s: %s", repo, exc)
            row = DetectionRow(
                repo=repo,
                theme_names=names,
                current_strategy=self._safe_current(repo),
                detected_strategy=Category.UNKNOWN,
                confidence=0.0,
                status=RowStatus.ERROR,
                error=str(exc) or exc.__class__.__name__,
            )
        row.variants = self.variant_classifier.report(repo, themes, self.hints)
        return row

    async def run_batch(self, repos: Sequence[str]) -> List[DetectionRow]:
        """Detect ``repos`` concurrently and return rows sorted by repository."""
        total = len(repos)
        results: List[Optional[DetectionRow]] = [None] * total
        semaphore = asyncio.Semaphore(self.concurrency)
        report = (
            ProgressThrottle(self.progress, clock=self.clock) if self.progress else None
        )
        completed = 0

        async def run_one(index: int, repo: str) -> None:
            nonlocal completed
            async with semaphore:
                row = await self.detect_repo(repo)
            results[index] = row
            completed += 1
            if report is not None:
                report(ProgressUpdate(completed, total, repo, row.status))

        self.logger.info("Detecting %d repos", total)
        await asyncio.gather(*(run_one(index, repo) for index, repo in enumerate(repos)))

        rows = [row for row in results if row is not None]
        rows.sort(key=lambda row: row.repo.lower())
        return rows

    def _safe_current(self, repo: str) -> CurrentStrategy:
        try:
            return self.store.current_strategy(repo)
        except ParseError:
            return MISSING


def _status_for(current: CurrentStrategy, detected: Category) -> RowStatus:
    if current == MISSING:
        return RowStatus.MISSING_META
    if current is detected:
        return RowStatus.MATCH
    return RowStatus.MISMATCH


__all__ = [
    "DetectionOrchestrator",
    "PROGRESS_INTERVAL",
    "ProgressCallback",
    "ProgressThrottle",
    "ProgressUpdate",
    "validate_repo",
]
