"""
요약 지표 테스트

전체/상태별/Kanban 합계, 완료율, 지연 건수, 보고서 문구를 테스트합니다.
"""
from __future__ import annotations

import pandas as pd
import pytest

from bom_dashboard.analytics.summary import (
    build_report,
    build_report_text,
    completion_rate,
    delayed_plan_count,
    summarize,
)
from bom_dashboard.domain import (
    STRICT_KANBAN_TOKENS,
    BomItem,
    CurrentBomComposition,
    TransferStatus,
    normalize_records,
)

NOW = pd.Timestamp("2025-06-01 09:00")


@pytest.fixture
def items(raw_records):
    return normalize_records(raw_records)


# ============================================================
# 합계
# ============================================================

def test_overall_totals(items):
    summary = summarize(items)

    assert summary.overall.count == 4
    assert summary.overall.total_value == pytest.approx(210.0)
    assert summary.overall.total_qty == 4 + 1000 + 7 + 2


def test_status_totals_add_up_to_overall(items):
    summary = summarize(items)

    assert list(summary.by_status) == list(TransferStatus)
    assert sum(t.count for t in summary.by_status.values()) == summary.overall.count
    assert sum(t.total_value for t in summary.by_status.values()) == pytest.approx(
        summary.overall.total_value
    )
    assert summary.status("Finished").total_value == pytest.approx(50.0)
    assert summary.status(TransferStatus.TEMPORARY_USAGE).count == 0


def test_kanban_totals_depend_on_tokens(items):
    extended = summarize(items)
    strict = summarize(items, STRICT_KANBAN_TOKENS)

    assert extended.kanban.count == 2
    assert extended.kanban.total_value == pytest.approx(50.0)
    assert strict.kanban.count == 1
    assert extended.kanban_by_status[TransferStatus.NOT_START].count == 1
    assert strict.kanban_by_status[TransferStatus.NOT_START].count == 0


def test_empty_summary():
    summary = summarize([])

    assert summary.overall.count == 0
    assert summary.overall.total_value == 0.0
    assert all(t.count == 0 for t in summary.by_status.values())
    assert completion_rate(summary) == 0


# ============================================================
# 완료율 / 지연
# ============================================================

def test_completion_rate(items):
    assert completion_rate(summarize(items)) == 25


def test_completion_rate_rounds_half_up():
    items = [BomItem("F", transfer_status=TransferStatus.FINISHED)] + [
        BomItem(f"N{i}") for i in range(7)
    ]

    assert completion_rate(summarize(items)) == 13


def test_delayed_plan_count_uses_expected_month():
    items = [
        BomItem("PAST", transfer_status=TransferStatus.IN_PROGRESS, expected_completion="2025-01-01"),
        BomItem("THIS", transfer_status=TransferStatus.IN_PROGRESS, expected_completion="2025-06-20"),
        BomItem("NEXT", transfer_status=TransferStatus.IN_PROGRESS, expected_completion="2025-07-01"),
        BomItem("NONE", transfer_status=TransferStatus.IN_PROGRESS),
        BomItem("DONE", transfer_status=TransferStatus.FINISHED, expected_completion="2024-01-01"),
    ]

    assert delayed_plan_count(items, pd.Timestamp("2025-06-15")) == 2
    assert delayed_plan_count(items, pd.Timestamp("2025-06-15", tz="UTC")) == 2


# ============================================================
# 보고서
# ============================================================

def test_build_report(items):
    report = build_report(items, NOW)

    assert report.total_parts == 4
    assert report.completed_parts == 1
    assert report.completion_rate == 25
    assert report.remaining_parts == 1
    assert report.delayed_plans == 1


def test_report_remaining_follows_composition(items):
    report = build_report(items, NOW, CurrentBomComposition.TARGET_TO_TRANSFER)

    assert report.remaining_parts == 2
    assert report.remaining_label == "Remaining (excluding Not to Transfer)"


def test_build_report_text(items):
    text = build_report_text(items, NOW)

    assert text.splitlines() == [
        "BoM Transfer Report",
        "",
        "- Parts completed: 1/4",
        "- Completion rate: 25%",
        "- Value completed: $50.00",
        "- Remaining (Not Start only): 1 parts",
        "- Delayed plans: 1",
        "Generated on: Jun 1, 2025, 9:00 AM",
    ]


def test_report_text_labels_remaining_by_composition(items):
    text = build_report_text(items, NOW, "open_including_hold")

    assert "- Remaining (including Not to Transfer): 3 parts" in text
    assert "excluding" not in text


def test_report_timestamp_in_afternoon():
    text = build_report_text([], pd.Timestamp("2025-12-24 15:05"))

    assert text.endswith("Generated on: Dec 24, 2025, 3:05 PM")
