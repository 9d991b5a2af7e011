"""요약 카드 렌더링 모듈.

전체/Kanban 금액, Current BoM 부품 수, 이관 상태별 합계 카드를 렌더링합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

import streamlit as st

from bom_dashboard.analytics.summary import BomSummary, Totals
from bom_dashboard.common.data_utils import format_currency
from bom_dashboard.core.config import CONFIG
from bom_dashboard.domain.models import TransferStatus

from .formatters import STATUS_COLORS, escape, format_number

_CARD_STYLES = """
<style>
.bom-card-grid {
    display: grid;
    grid-template-columns: repeat(var(--bom-card-columns, 4), minmax(180px, 1fr));
    gap: 0.75rem;
    margin-bottom: 0.75rem;
}
.bom-card {
    border: 1px solid rgba(49, 51, 63, 0.15);
    border-radius: 0.75rem;
    padding: 0.85rem 1rem;
    background-color: rgba(255, 255, 255, 0.9);
    box-shadow: 0 8px 16px rgba(49, 51, 63, 0.06);
}
.bom-card-title {
    font-size: 0.78rem;
    text-transform: uppercase;
    letter-spacing: 0.04em;
    color: #64748B;
}
.bom-card-value {
    font-size: 1.45rem;
    font-weight: 600;
    white-space: nowrap;
}
.bom-card-subtitle {
    font-size: 0.78rem;
    color: #475569;
}
</style>
"""


@dataclass(frozen=True)
class SummaryCard:
    title: str
    value: str
    subtitle: str
    color: str = "#0F172A"


def _totals_subtitle(totals: Totals) -> str:
    return f"{format_number(totals.count)} parts • {format_number(totals.total_qty)} qty"


def build_summary_cards(summary: BomSummary) -> list[SummaryCard]:
    """
    요약 카드 목록을 만듭니다.

    "Current BoM (parts)" 카드는 이관 대상(Not Start + In Progress)과
    Not to Transfer 부품 수를 나눠서 보여줍니다.
    """
    by_status = summary.by_status
    target_parts = (
        by_status[TransferStatus.NOT_START].count + by_status[TransferStatus.IN_PROGRESS].count
    )
    hold_parts = by_status[TransferStatus.NOT_TO_TRANSFER].count

    cards = [
        SummaryCard(
            "Total BoM Value",
            format_currency(summary.overall.total_value),
            _totals_subtitle(summary.overall),
            "#2563EB",
        ),
        SummaryCard(
            "Kanban Value",
            format_currency(summary.kanban.total_value),
            _totals_subtitle(summary.kanban),
            "#9333EA",
        ),
        SummaryCard(
            "Current BoM (parts)",
            format_number(target_parts + hold_parts),
            f"{format_number(target_parts)} target to transfer + "
            f"{format_number(hold_parts)} Not to Transfer",
            "#4F46E5",
        ),
    ]
    for status, totals in by_status.items():
        cards.append(
            SummaryCard(
                "Not Started" if status is TransferStatus.NOT_START else status.label,
                format_currency(totals.total_value),
                _totals_subtitle(totals),
                STATUS_COLORS[status],
            )
        )
    return cards


def build_card_html(card: SummaryCard) -> str:
    return (
        '<div class="bom-card">'
        f'<div class="bom-card-title">{escape(card.title)}</div>'
        f'<div class="bom-card-value" style="color:{card.color};">{escape(card.value)}</div>'
        f'<div class="bom-card-subtitle">{escape(card.subtitle)}</div>'
        "</div>"
    )


def build_grid(cards: Sequence[SummaryCard], *, columns: int | None = None) -> str:
    if not cards:
        return ""
    cols = columns or CONFIG.ui.summary_cards_per_row
    body = "".join(build_card_html(card) for card in cards)
    return f'<div class="bom-card-grid" style="--bom-card-columns: {int(cols)};">{body}</div>'


def render_summary_cards(summary: BomSummary) -> None:
    """요약 카드를 렌더링합니다 (스타일은 매 실행마다 다시 주입)."""

    st.markdown(_CARD_STYLES, unsafe_allow_html=True)
    st.markdown(build_grid(build_summary_cards(summary)), unsafe_allow_html=True)


def render_metric_row(metrics: Mapping[str, str]) -> None:
    """탭 상단의 간단한 지표 행 (st.metric)."""

    if not metrics:
        return
    columns = st.columns(len(metrics))
    for column, (label, value) in zip(columns, metrics.items()):
        column.metric(label, value)
