"""CLI entrypoints for themeprobe commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .classifier import CONFIDENCE_THRESHOLD, StrategyClassifier
from .config import CONFIG_FILENAME, ThemeProbeConfig, load_config
from .errors import ConfigError, ParseError, ThemeLookupError, UsageError
from .fetch import CachedFetcher
from .github import GitHubSource
from .hints import HintSet
from .logging import configure_logging
from .models import Category, DetectionRow, RowStatus
from .orchestrator import DetectionOrchestrator, ProgressUpdate
from .patching import apply_patch, apply_variant_modes, compute_patch
from .report import (
    CoverageSummary,
    RunSummary,
    detail_lines,
    row_to_dict,
    rows_from_report,
    signal_lines,
)
from .stores.evidence_cache import FileEvidenceCache
from .stores.registry import (
    dump_json,
    load_excluded,
    load_hints_document,
    load_inventory,
    load_store,
    read_json,
    save_store,
)

DETECTION_REPORT = "detection.json"
COVERAGE_REPORT = "variant-coverage.json"


@dataclass
class DetectOptions:
    """Effective settings for a detect run after merging flags over config."""

    index: Path
    sources: Path
    output: Path
    cache: Path
    concurrency: int
    threshold: float
    exclude: List[str]
    repo: Optional[str] = None
    theme: Optional[str] = None
    sample: Optional[int] = None
    apply: bool = False
    no_cache: bool = False
    verbose: bool = False


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity and print signal-level detail.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        type=Path,
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write log records to this file.",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to {CONFIG_FILENAME} (defaults to the current directory).",
    )


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="themeprobe",
        description="Detect theme activation strategies and variant modes.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    detect_parser = subparsers.add_parser(
        "detect",
        help="Classify theme repositories and report disagreements with the store.",
    )
    _add_verbose_option(detect_parser, suppress_default=True)
    _add_log_file_option(detect_parser, suppress_default=True)
    _add_config_option(detect_parser)
    detect_parser.add_argument("--index", type=Path, help="Theme inventory (index.json).")
    detect_parser.add_argument("--sources", type=Path, help="Registry sources directory.")
    detect_parser.add_argument("--output", type=Path, help="Directory for report files.")
    detect_parser.add_argument("--cache", type=Path, help="Evidence cache directory.")
    target = detect_parser.add_mutually_exclusive_group()
    target.add_argument("--repo", help="Detect a single repository (owner/name).")
    target.add_argument("--theme", help="Detect the repository of a named theme.")
    detect_parser.add_argument(
        "-n",
        "--sample",
        type=_positive_int,
        help="Process only the first N repositories.",
    )
    detect_parser.add_argument(
        "--concurrency",
        type=_positive_int,
        help="Maximum in-flight repositories (default 6).",
    )
    detect_parser.add_argument(
        "--apply",
        action="store_true",
        help="Write high-confidence strategy updates to the sources.",
    )
    detect_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore cached evidence and fetch again.",
    )

    variants_parser = subparsers.add_parser(
        "apply-variants",
        help="Fill in missing variant modes from a detection report.",
    )
    _add_verbose_option(variants_parser, suppress_default=True)
    _add_log_file_option(variants_parser, suppress_default=True)
    _add_config_option(variants_parser)
    variants_parser.add_argument(
        "--report",
        type=Path,
        help=f"Detection report (defaults to <output>/{DETECTION_REPORT}).",
    )
    variants_parser.add_argument("--sources", type=Path, help="Registry sources directory.")
    variants_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the changes without writing them.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for themeprobe commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(args.config or Path.cwd())
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "detect":
        options = _detect_options(args, config)
        try:
            asyncio.run(_run_detect(options, config))
        except (UsageError, ThemeLookupError) as exc:
            parser.exit(1, f"{exc}\n")
        except (ParseError, FileNotFoundError) as exc:
            parser.exit(1, f"themeprobe detect failed: {exc}\n")
    elif args.command == "apply-variants":
        sources = args.sources or config.paths.sources
        report = args.report or config.paths.output / DETECTION_REPORT
        try:
            _run_apply_variants(report, sources, dry_run=bool(args.dry_run))
        except (ParseError, FileNotFoundError) as exc:
            parser.exit(1, f"themeprobe apply-variants failed: {exc}\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _detect_options(args: argparse.Namespace, config: ThemeProbeConfig) -> DetectOptions:
    threshold = config.confidence_threshold
    return DetectOptions(
        index=args.index or config.paths.index,
        sources=args.sources or config.paths.sources,
        output=args.output or config.paths.output,
        cache=args.cache or config.paths.cache,
        concurrency=args.concurrency or config.concurrency,
        threshold=CONFIDENCE_THRESHOLD if threshold is None else threshold,
        exclude=list(config.exclude_repos),
        repo=args.repo,
        theme=args.theme,
        sample=args.sample,
        apply=bool(args.apply),
        no_cache=bool(args.no_cache),
        verbose=bool(args.verbose),
    )


async def _run_detect(options: DetectOptions, config: ThemeProbeConfig) -> None:
    print("Loading theme data...")
    inventory = load_inventory(options.index)
    store = load_store(options.sources)
    hints = HintSet.from_document(load_hints_document(options.sources))
    exclude = [*options.exclude, *load_excluded(options.sources)]

    async with GitHubSource.from_config(config.github) as source:
        fetcher = CachedFetcher(
            source, FileEvidenceCache(options.cache), no_cache=options.no_cache
        )
        orchestrator = DetectionOrchestrator(
            fetcher,
            store,
            inventory,
            classifier=StrategyClassifier(threshold=options.threshold),
            hints=hints,
            concurrency=options.concurrency,
            exclude=exclude,
            progress=_print_progress,
        )

        if options.repo or options.theme:
            if options.theme:
                repo = orchestrator.resolve_theme(options.theme)
            else:
                repo = orchestrator.resolve_repo(options.repo)
            print(f"Detecting: {repo}")
            row = await orchestrator.detect_repo(repo)
            _report_single(row, options)
            return

        repos = orchestrator.select_repos(sample=options.sample)
        rows = await orchestrator.run_batch(repos)

    _write_reports(options.output, [row_to_dict(row) for row in rows], rows)

    patch = compute_patch(rows, threshold=options.threshold)
    summary = RunSummary.from_rows(rows, to_apply=len(patch))
    print()
    for line in summary.lines():
        print(line)
    if options.verbose:
        for line in detail_lines(rows):
            print(line)

    if options.apply:
        print(f"Applying {len(patch)} strategy updates...")
        written = save_store(apply_patch(store, patch, inventory), options.sources)
        print(f"Updated {len(written)} file(s) in {options.sources}")
    elif patch:
        print("Run with --apply to update sources")
    print(f"Report: {options.output / DETECTION_REPORT}")


def _report_single(row: DetectionRow, options: DetectOptions) -> None:
    detected = row.detected_strategy.value
    if row.status is RowStatus.MATCH:
        print(f"Strategy: {detected} (confidence: {row.confidence})")
    elif row.status is RowStatus.MISMATCH:
        current = row.current_strategy
        label = current.value if isinstance(current, Category) else current
        print(f"{label} -> {detected} (confidence: {row.confidence})")
    elif row.status is RowStatus.MISSING_META:
        print(f"Detected: {detected} (confidence: {row.confidence})")
    else:
        print(f"Error: {row.error}")

    if options.verbose and row.signals:
        print()
        for line in signal_lines(row.signals):
            print(line)

    _write_reports(options.output, row_to_dict(row), [row])


def _write_reports(output: Path, detection: object, rows: List[DetectionRow]) -> None:
    output.mkdir(parents=True, exist_ok=True)
    (output / DETECTION_REPORT).write_text(dump_json(detection), encoding="utf-8")
    coverage = CoverageSummary.from_rows(rows)
    (output / COVERAGE_REPORT).write_text(dump_json(coverage.to_dict()), encoding="utf-8")


def _print_progress(update: ProgressUpdate) -> None:
    width = 30
    filled = int(width * update.completed / update.total) if update.total else width
    percent = int(100 * update.completed / update.total) if update.total else 100
    bar = "#" * filled + "-" * (width - filled)
    line = f"\r  [{bar}] {update.completed}/{update.total} ({percent}%) {update.status.value} {update.repo}"
    end = "\n" if update.completed >= update.total else ""
    sys.stderr.write(line + end)
    sys.stderr.flush()


def _run_apply_variants(report: Path, sources: Path, *, dry_run: bool) -> None:
    rows = rows_from_report(read_json(report))
    store = load_store(sources)
    outcome = apply_variant_modes(store, rows)

    if outcome.changes == 0:
        print("No variant modes to apply")
        return
    for detail in outcome.details:
        print(f"  {detail}")
    if dry_run:
        print(f"Would update {outcome.changes} variants across {outcome.themes} themes (dry-run)")
        return
    save_store(outcome.store, sources)
    print(f"Updated {outcome.changes} variants across {outcome.themes} themes")


if __name__ == "__main__":
    main(sys.argv[1:])
