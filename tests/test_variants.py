"""Tests for variant light/dark classification."""

from __future__ import annotations

import pytest

from themeprobe.hints import HintSet
from themeprobe.models import Hint, Mode, ThemeEntry, Variant
from themeprobe.variants import VariantModeClassifier


@pytest.mark.parametrize(
    ("name", "mode", "confidence"),
    [
        ("base16-dracula-light", Mode.LIGHT, 0.9),
        ("base16-dracula", Mode.DARK, 0.9),
        ("base24-one-light", Mode.LIGHT, 0.9),
        ("tokyonight-day", Mode.LIGHT, 0.7),
        ("catppuccin-mocha", Mode.DARK, 0.7),
        ("rose-pine-dawn", Mode.LIGHT, 0.7),
        ("Gruvbox-Dark", Mode.DARK, 0.7),
    ],
)
def test_pattern_classification(name: str, mode: Mode, confidence: float) -> None:
    result = VariantModeClassifier().classify(name)

    assert result.mode is mode
    assert result.confidence == confidence
    assert result.source == "pattern"


def test_unmatched_name_has_no_mode() -> None:
    result = VariantModeClassifier().classify("kanagawa-lotus")

    assert result.mode is None
    assert result.confidence == 0.0
    assert result.source == "unknown"


def test_hint_overrides_pattern() -> None:
    hints = HintSet([Hint(repo="rebelot/kanagawa.nvim", variant_modes={"kanagawa-lotus": Mode.LIGHT})])

    result = VariantModeClassifier().classify_for_repo(
        "rebelot/kanagawa.nvim", "kanagawa-lotus", hints
    )

    assert result.mode is Mode.LIGHT
    assert result.confidence == 1.0
    assert result.source == "hint"


def test_report_counts_unique_variants() -> None:
    themes = [
        ThemeEntry(
            name="kanagawa",
            repo="rebelot/kanagawa.nvim",
            variants=[Variant("kanagawa-wave"), Variant("kanagawa-lotus"), Variant("kanagawa-dragon")],
        ),
        ThemeEntry(
            name="kanagawa-paper",
            repo="rebelot/kanagawa.nvim",
            variants=[Variant("kanagawa-lotus"), Variant("kanagawa-paper")],
        ),
    ]

    report = VariantModeClassifier().report("rebelot/kanagawa.nvim", themes)

    assert report is not None
    assert report.total == 4
    assert report.with_mode == 1
    assert report.coverage == 0.25
    assert [item.name for item in report.detected][-1] == "kanagawa-paper"


def test_report_is_none_without_variants() -> None:
    themes = [ThemeEntry(name="nord", repo="shaunsingh/nord.nvim")]

    assert VariantModeClassifier().report("shaunsingh/nord.nvim", themes) is None
