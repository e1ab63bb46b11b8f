"""Detection report serialisation and summaries."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import ParseError
from .models import (
    MISSING,
    Category,
    DetectionRow,
    RowStatus,
    Signal,
    VariantModeResult,
    VariantReport,
)
from .stores.registry import parse_category, parse_mode


@dataclass
class RunSummary:
    matches: int = 0
    mismatches: int = 0
    missing_meta: int = 0
    errors: int = 0
    to_apply: int = 0

    @classmethod
    def from_rows(cls, rows: Iterable[DetectionRow], *, to_apply: int = 0) -> "RunSummary":
        counts = Counter(row.status for row in rows)
        return cls(
            matches=counts[RowStatus.MATCH],
            mismatches=counts[RowStatus.MISMATCH],
            missing_meta=counts[RowStatus.MISSING_META],
            errors=counts[RowStatus.ERROR],
            to_apply=to_apply,
        )

    def lines(self) -> List[str]:
        return [
            "Summary:",
            f"  Matches:       {self.matches}",
            f"  Mismatches:    {self.mismatches}",
            f"  Missing meta:  {self.missing_meta}",
            f"  Errors:        {self.errors}",
            f"  To apply:      {self.to_apply} repos",
        ]


@dataclass
class CoverageSummary:
    """Aggregate variant-mode coverage, for manual triage."""

    total_variants: int = 0
    with_mode: int = 0
    by_source: Dict[str, int] = field(default_factory=dict)
    incomplete: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_rows(cls, rows: Iterable[DetectionRow]) -> "CoverageSummary":
        summary = cls()
        sources: Counter[str] = Counter()
        for row in rows:
            report = row.variants
            if report is None:
                continue
            summary.total_variants += report.total
            summary.with_mode += report.with_mode
            sources.update(item.source for item in report.detected)
            if report.with_mode < report.total:
                summary.incomplete.append(
                    {
                        "repo": row.repo,
                        "total": report.total,
                        "withMode": report.with_mode,
                        "coverage": round(report.coverage, 2),
                        "undetected": [item.name for item in report.detected if item.mode is None],
                    }
                )
        summary.by_source = dict(sorted(sources.items()))
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalVariants": self.total_variants,
            "withMode": self.with_mode,
            "bySource": self.by_source,
            "incomplete": self.incomplete,
        }


def row_to_dict(row: DetectionRow) -> Dict[str, Any]:
    current = row.current_strategy
    payload: Dict[str, Any] = {
        "repo": row.repo,
        "themeNames": list(row.theme_names),
        "currentStrategy": current.value if isinstance(current, Category) else current,
        "detectedStrategy": row.detected_strategy.value,
        "confidence": row.confidence,
        "status": row.status.value,
        "signals": [signal_to_dict(signal) for signal in row.signals],
    }
    if row.error is not None:
        payload["error"] = row.error
    if row.variants is not None:
        payload["variants"] = {
            "total": row.variants.total,
            "withMode": row.variants.with_mode,
            "coverage": round(row.variants.coverage, 2),
            "detected": [_variant_to_dict(item) for item in row.variants.detected],
        }
    return payload


def signal_to_dict(signal: Signal) -> Dict[str, Any]:
    return {"strategy": signal.category.value, "score": signal.weight, "reason": signal.reason}


def _variant_to_dict(item: VariantModeResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": item.name,
        "confidence": item.confidence,
        "source": item.source,
    }
    if item.mode is not None:
        payload["detectedMode"] = item.mode.value
    if item.reason:
        payload["reason"] = item.reason
    return payload


def row_from_dict(payload: Mapping[str, Any]) -> DetectionRow:
    """Rebuild a row from a detection report, rejecting unknown enum values."""
    try:
        repo = payload["repo"]
        current_raw = payload["currentStrategy"]
        current = (
            MISSING
            if current_raw == MISSING
            else parse_category(current_raw, context=f"report row {repo}")
        )
        status = RowStatus(payload["status"])
        signals = [
            Signal(
                parse_category(item["strategy"], context=f"report row {repo}"),
                int(item["score"]),
                str(item["reason"]),
            )
            for item in payload.get("signals", [])
        ]
        return DetectionRow(
            repo=repo,
            theme_names=list(payload.get("themeNames", [])),
            current_strategy=current,
            detected_strategy=parse_category(
                payload["detectedStrategy"], context=f"report row {repo}"
            ),
            confidence=float(payload["confidence"]),
            status=status,
            signals=signals,
            error=payload.get("error"),
            variants=_variants_from_dict(payload.get("variants"), repo),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ParseError(f"Malformed detection row: {exc}") from exc


def _variants_from_dict(payload: Any, repo: str) -> Optional[VariantReport]:
    if not isinstance(payload, dict):
        return None
    detected = []
    for item in payload.get("detected", []):
        mode = item.get("detectedMode")
        detected.append(
            VariantModeResult(
                name=item["name"],
                mode=parse_mode(mode, context=f"report row {repo}") if mode else None,
                confidence=float(item.get("confidence", 0.0)),
                source=str(item.get("source", "unknown")),
                reason=item.get("reason"),
            )
        )
    return VariantReport(
        total=int(payload.get("total", len(detected))),
        with_mode=int(payload.get("withMode", 0)),
        detected=detected,
    )


def rows_from_report(data: Any) -> List[DetectionRow]:
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ParseError("Detection report must be a row or a list of rows")
    return [row_from_dict(item) for item in data]


def detail_lines(rows: Sequence[DetectionRow]) -> List[str]:
    """Verbose listing of mismatches and errors."""
    lines: List[str] = []
    mismatches = [row for row in rows if row.status is RowStatus.MISMATCH]
    if mismatches:
        lines.append("Mismatches:")
        for row in mismatches:
            current = row.current_strategy
            label = current.value if isinstance(current, Category) else current
            lines.append(
                f"  {row.repo}: {label} -> {row.detected_strategy.value} (conf: {row.confidence})"
            )
    errors = [row for row in rows if row.status is RowStatus.ERROR]
    if errors:
        lines.append("Errors:")
        for row in errors:
            lines.append(f"  {row.repo}: {row.error or 'unknown'}")
    return lines


def signal_lines(signals: Sequence[Signal]) -> List[str]:
    return [f"  {s.category.value} (+{s.weight}): {s.reason}" for s in signals]


__all__ = [
    "CoverageSummary",
    "RunSummary",
    "detail_lines",
    "row_from_dict",
    "row_to_dict",
    "rows_from_report",
    "signal_lines",
    "signal_to_dict",
]
