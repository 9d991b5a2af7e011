"""
UI 구성 요소 테스트

요약 카드, 차트, 포맷터, 도메인 예외 어댑터를 테스트합니다.
Streamlit 호출은 mock으로 대체합니다.
"""
from __future__ import annotations

from unittest.mock import patch

import pandas as pd
import pytest

from bom_dashboard.analytics.monthly import bucket_by_month, remaining_trajectory
from bom_dashboard.analytics.summary import summarize
from bom_dashboard.domain import (
    BomItem,
    TransferStatus,
    ValidationError,
    WriteError,
    normalize_records,
)
from bom_dashboard.ui.adapters import handle_domain_errors
from bom_dashboard.ui.cards import build_grid, build_summary_cards, render_summary_cards
from bom_dashboard.ui.charts import (
    completion_distribution_figure,
    decline_figure,
    plan_forecast_figure,
    planned_start_figure,
    to_plot_list,
)
from bom_dashboard.ui.formatters import (
    format_date,
    format_month,
    format_number,
    format_price,
    status_badge,
)

NOW = pd.Timestamp("2025-06-15")


@pytest.fixture
def items(raw_records):
    return normalize_records(raw_records)


# ============================================================
# 요약 카드
# ============================================================

def test_summary_cards(items):
    cards = build_summary_cards(summarize(items))

    assert [card.title for card in cards] == [
        "Total BoM Value",
        "Kanban Value",
        "Current BoM (parts)",
        "Not Started",
        "In Progress",
        "Finished",
        "Temporary Usage",
        "Not to Transfer",
    ]
    assert cards[0].value == "$210.00"
    assert cards[1].value == "$50.00"
    assert cards[2].value == "3"
    assert cards[2].subtitle == "2 target to transfer + 1 Not to Transfer"


def test_card_grid_layout():
    cards = build_summary_cards(summarize([BomItem("X-1", transfer_status=TransferStatus.FINISHED)]))

    html = build_grid(cards, columns=3)

    assert "--bom-card-columns: 3;" in html
    assert html.count('class="bom-card"') == len(cards)
    assert build_grid([]) == ""


def test_render_summary_cards_uses_markdown(items):
    with patch("bom_dashboard.ui.cards.st") as mock_st:
        render_summary_cards(summarize(items))

        assert mock_st.markdown.call_count == 2
        assert mock_st.markdown.call_args.kwargs["unsafe_allow_html"] is True


# ============================================================
# 차트
# ============================================================

def _finished(code, date):
    return BomItem(code, latest_component_date=date, transfer_status=TransferStatus.FINISHED)


def test_to_plot_list_drops_missing():
    assert to_plot_list(pd.Series([1, None, 3])) == [1.0, 3.0]
    assert to_plot_list([1, float("nan"), 2]) == [1, 2]
    assert to_plot_list(None) == []


def test_completion_distribution_figure_uses_two_axes():
    buckets = bucket_by_month(
        [_finished("A", "2025-01-10"), _finished("B", "2025-02-10")],
        lambda item: item.latest_component_date,
        NOW,
    )

    fig = completion_distribution_figure(buckets)

    assert len(fig.data) == 2
    assert list(fig.data[0].x) == ["Jan 2025", "Feb 2025"]
    assert fig.data[1].yaxis == "y2"


def test_empty_charts_have_no_traces():
    empty = bucket_by_month([], lambda item: item.planned_start, NOW)

    assert len(completion_distribution_figure(empty).data) == 0
    assert len(plan_forecast_figure(empty).data) == 0


def test_plan_forecast_figure_splits_delayed():
    plan = [
        BomItem("P1", transfer_status=TransferStatus.IN_PROGRESS, expected_completion="2025-01-01"),
        BomItem("P2", transfer_status=TransferStatus.IN_PROGRESS, expected_completion="2025-09-01"),
    ]
    buckets = bucket_by_month(plan, lambda item: item.expected_completion, NOW)

    fig = plan_forecast_figure(buckets)

    assert fig.layout.barmode == "stack"
    assert [trace.name for trace in fig.data] == ["Planned", "Delayed"]
    assert list(fig.data[0].y) == [0, 1]
    assert list(fig.data[1].y) == [1, 0]


def test_trajectory_figures():
    empty = bucket_by_month([], lambda item: item.planned_start, NOW)
    trajectory = remaining_trajectory(empty, 5, NOW)

    decline = decline_figure(trajectory)
    starts = planned_start_figure(trajectory)

    assert list(decline.data[0].y) == [5]
    assert list(starts.data[0].x) == ["Jun 2025"]


# ============================================================
# 포맷터
# ============================================================

def test_formatters():
    assert format_number(1234.6) == "1,235"
    assert format_number(None) == "-"
    assert format_price(12.5) == "$12.50"
    assert format_price(None) == "-"
    assert format_date("2025-03-15T08:00:00.000Z") == "2025-03-15"
    assert format_month("2025-03-15") == "Mar 2025"
    assert format_month("") == "-"


def test_status_badge_escapes_label():
    badge = status_badge("Finished", label="<Done>")

    assert "&lt;Done&gt;" in badge
    assert "#059669" in badge


# ============================================================
# 예외 어댑터
# ============================================================

def test_validation_error_becomes_warning():
    with patch("bom_dashboard.ui.adapters.st") as mock_st:
        with handle_domain_errors():
            raise ValidationError("bad key")

        mock_st.warning.assert_called_once()
        assert "bad key" in mock_st.warning.call_args[0][0]
        mock_st.error.assert_not_called()


def test_write_error_becomes_error():
    with patch("bom_dashboard.ui.adapters.st") as mock_st:
        with handle_domain_errors():
            raise WriteError("permission denied")

        mock_st.error.assert_called_once()
        assert "permission denied" in mock_st.error.call_args[0][0]


def test_unexpected_error_shows_exception():
    with patch("bom_dashboard.ui.adapters.st") as mock_st:
        with handle_domain_errors():
            raise RuntimeError("boom")

        mock_st.error.assert_called_once()
        mock_st.exception.assert_called_once()
