"""Tests for detection report serialisation and summaries."""

from __future__ import annotations

import pytest

from themeprobe.errors import ParseError
from themeprobe.models import (
    MISSING,
    Category,
    DetectionRow,
    Mode,
    RowStatus,
    Signal,
    VariantModeResult,
    VariantReport,
)
from themeprobe.report import (
    CoverageSummary,
    RunSummary,
    detail_lines,
    row_from_dict,
    row_to_dict,
    rows_from_report,
)


def _rows() -> list[DetectionRow]:
    return [
        DetectionRow(
            repo="folke/tokyonight.nvim",
            theme_names=["tokyonight"],
            current_strategy=Category.COLORSCHEME,
            detected_strategy=Category.LOAD,
            confidence=1.0,
            status=RowStatus.MISMATCH,
            signals=[Signal(Category.LOAD, 8, "README contains require(...).load(...)")],
            variants=VariantReport(
                total=2,
                with_mode=1,
                detected=[
                    VariantModeResult("tokyonight-day", Mode.LIGHT, 0.7, "pattern", "name contains 'day'"),
                    VariantModeResult("tokyonight-x", None, 0.0, "unknown"),
                ],
            ),
        ),
        DetectionRow(
            repo="ghost/theme",
            theme_names=["ghost"],
            current_strategy=MISSING,
            detected_strategy=Category.UNKNOWN,
            confidence=0.0,
            status=RowStatus.ERROR,
            error="ghost/theme: not found",
        ),
    ]


def test_row_to_dict_uses_wire_names() -> None:
    payload = row_to_dict(_rows()[0])

    assert payload["themeNames"] == ["tokyonight"]
    assert payload["currentStrategy"] == "colorscheme"
    assert payload["detectedStrategy"] == "load"
    assert payload["signals"] == [
        {"strategy": "load", "score": 8, "reason": "README contains require(...).load(...)"}
    ]
    assert payload["variants"]["coverage"] == 0.5
    assert payload["variants"]["detected"][0]["detectedMode"] == "light"
    assert "detectedMode" not in payload["variants"]["detected"][1]
    assert "error" not in payload


def test_rows_survive_serialisation() -> None:
    rows = _rows()

    assert rows_from_report([row_to_dict(row) for row in rows]) == rows
    assert rows_from_report(row_to_dict(rows[1])) == [rows[1]]


@pytest.mark.parametrize(
    "mutation",
    [
        {"detectedStrategy": "lazy"},
        {"status": "pending"},
        {"currentStrategy": "plugin"},
    ],
)
def test_row_from_dict_rejects_unknown_values(mutation: dict) -> None:
    payload = {**row_to_dict(_rows()[1]), **mutation}

    with pytest.raises(ParseError):
        row_from_dict(payload)


def test_rows_from_report_rejects_other_shapes() -> None:
    with pytest.raises(ParseError):
        rows_from_report("detection")


def test_run_summary_counts_statuses() -> None:
    summary = RunSummary.from_rows(_rows(), to_apply=1)

    assert (summary.matches, summary.mismatches, summary.missing_meta, summary.errors) == (0, 1, 0, 1)
    assert summary.lines()[-1] == "  To apply:      1 repos"


def test_coverage_summary_lists_incomplete_repos() -> None:
    coverage = CoverageSummary.from_rows(_rows()).to_dict()

    assert coverage["totalVariants"] == 2
    assert coverage["withMode"] == 1
    assert coverage["bySource"] == {"pattern": 1, "unknown": 1}
    assert coverage["incomplete"] == [
        {
            "repo": "folke/tokyonight.nvim",
            "total": 2,
            "withMode": 1,
            "coverage": 0.5,
            "undetected": ["tokyonight-x"],
        }
    ]


def test_detail_lines_list_mismatches_and_errors() -> None:
    assert detail_lines(_rows()) == [
        "Mismatches:",
        "  folke/tokyonight.nvim: colorscheme -> load (conf: 1.0)",
        "Errors:",
        "  ghost/theme: ghost/theme: not found",
    ]
