"""요약 지표 계산 함수들.

전체/상태별/Kanban 부품 수, 금액, 수량 합계와 Report 탭의
포트폴리오 요약 문구를 계산합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

import pandas as pd

from bom_dashboard.common.data_utils import (
    format_currency,
    month_start,
    round_half_up,
    to_naive_utc,
)
from bom_dashboard.domain.filters import CurrentBomComposition, current_bom_items
from bom_dashboard.domain.models import (
    KANBAN_TOKENS,
    STATUS_ORDER,
    BomItem,
    TransferStatus,
    is_kanban,
    items_to_frame,
)


@dataclass(frozen=True)
class Totals:
    """부품 수, 총 금액, 총 수량."""

    count: int = 0
    total_value: float = 0.0
    total_qty: int = 0

    @classmethod
    def of(cls, items: Sequence[BomItem]) -> "Totals":
        return cls(
            count=len(items),
            total_value=float(sum(item.value for item in items)),
            total_qty=int(sum(item.total_qty for item in items)),
        )


@dataclass(frozen=True)
class BomSummary:
    """
    요약 카드에 표시되는 집계 결과.

    Attributes:
        overall: 전체 합계
        kanban: Kanban 부품 합계
        by_status: 이관 상태별 합계 (다섯 상태 모두 포함, STATUS_ORDER 순)
        kanban_by_status: Kanban 부품의 이관 상태별 합계
    """

    overall: Totals
    kanban: Totals
    by_status: Mapping[TransferStatus, Totals]
    kanban_by_status: Mapping[TransferStatus, Totals]

    def status(self, status: TransferStatus | str) -> Totals:
        return self.by_status[TransferStatus.parse(status)]


def _totals_by_status(frame: pd.DataFrame) -> dict[TransferStatus, Totals]:
    result = {status: Totals() for status in STATUS_ORDER}
    if frame.empty:
        return result

    grouped = frame.groupby("transfer_status", sort=False).agg(
        count=("component_material", "size"),
        total_value=("value", "sum"),
        total_qty=("total_qty", "sum"),
    )
    for status_value, row in grouped.iterrows():
        status = TransferStatus(status_value)
        result[status] = Totals(
            count=int(row["count"]),
            total_value=float(row["total_value"]),
            total_qty=int(row["total_qty"]),
        )
    return result


def _frame_totals(frame: pd.DataFrame) -> Totals:
    if frame.empty:
        return Totals()
    return Totals(
        count=int(len(frame)),
        total_value=float(frame["value"].sum()),
        total_qty=int(frame["total_qty"].sum()),
    )


def summarize(
    items: Sequence[BomItem],
    kanban_tokens: Iterable[str] = KANBAN_TOKENS,
) -> BomSummary:
    """
    부품 목록의 전체/상태별/Kanban 합계를 계산합니다.

    상태별 부품 수의 합은 항상 전체 부품 수와 같고,
    상태별 금액의 합은 전체 금액과 같습니다.

    Args:
        items: 정규화된 부품 목록
        kanban_tokens: Kanban으로 인정하는 플래그 값

    Returns:
        BomSummary
    """
    frame = items_to_frame(items)
    tokens = frozenset(kanban_tokens)
    if frame.empty:
        kanban_mask = pd.Series([], dtype=bool)
    else:
        kanban_mask = frame["kanban_flag"].map(lambda flag: is_kanban(flag, tokens)).astype(bool)
    kanban_frame = frame[kanban_mask] if not frame.empty else frame

    return BomSummary(
        overall=_frame_totals(frame),
        kanban=_frame_totals(kanban_frame),
        by_status=_totals_by_status(frame),
        kanban_by_status=_totals_by_status(kanban_frame),
    )


def completion_rate(summary: BomSummary) -> int:
    """완료율 (Finished 부품 수 / 전체 부품 수, 정수 %)."""

    finished = summary.by_status[TransferStatus.FINISHED].count
    return round_half_up(finished / max(summary.overall.count, 1) * 100)


def delayed_plan_count(items: Sequence[BomItem], now: object) -> int:
    """완료 예정 월이 이미 지난 In Progress 부품 수."""

    reference = to_naive_utc(now)
    delayed = 0
    for item in items:
        if item.transfer_status is not TransferStatus.IN_PROGRESS:
            continue
        expected = month_start(item.expected_completion)
        if expected is not None and expected < reference:
            delayed += 1
    return delayed


@dataclass(frozen=True)
class ReportSummary:
    """Report 탭의 포트폴리오 요약."""

    total_parts: int
    completed_parts: int
    completion_rate: int
    completed_value: float
    total_value: float
    remaining_parts: int
    delayed_plans: int
    generated_at: pd.Timestamp
    remaining_label: str = CurrentBomComposition.NOT_STARTED.remaining_label


def build_report(
    items: Sequence[BomItem],
    now: object,
    composition: CurrentBomComposition | str = CurrentBomComposition.NOT_STARTED,
) -> ReportSummary:
    composition = CurrentBomComposition.from_name(composition)
    summary = summarize(items)
    return ReportSummary(
        total_parts=summary.overall.count,
        completed_parts=summary.by_status[TransferStatus.FINISHED].count,
        completion_rate=completion_rate(summary),
        completed_value=summary.by_status[TransferStatus.FINISHED].total_value,
        total_value=summary.overall.total_value,
        remaining_parts=len(current_bom_items(items, composition)),
        delayed_plans=delayed_plan_count(items, now),
        generated_at=pd.Timestamp(now),
        remaining_label=composition.remaining_label,
    )


def build_report_text(
    items: Sequence[BomItem],
    now: object,
    composition: CurrentBomComposition | str = CurrentBomComposition.NOT_STARTED,
) -> str:
    """
    복사해서 공유할 수 있는 평문 보고서를 만듭니다.

    Examples:
        >>> print(build_report_text([], pd.Timestamp("2025-06-01 09:00")))
        BoM Transfer Report
        <BLANKLINE>
        - Parts completed: 0/0
        - Completion rate: 0%
        - Value completed: $0.00
        - Remaining (Not Start only): 0 parts
        - Delayed plans: 0
        Generated on: Jun 1, 2025, 9:00 AM
    """
    report = build_report(items, now, composition)
    generated = report.generated_at
    stamp = (
        f"{generated.strftime('%b')} {generated.day}, {generated.year}, "
        f"{(generated.hour % 12) or 12}:{generated.minute:02d} "
        f"{'AM' if generated.hour < 12 else 'PM'}"
    )
    lines = [
        "BoM Transfer Report",
        "",
        f"- Parts completed: {report.completed_parts}/{report.total_parts}",
        f"- Completion rate: {report.completion_rate}%",
        f"- Value completed: {format_currency(report.completed_value)}",
        f"- {report.remaining_label}: {report.remaining_parts} parts",
        f"- Delayed plans: {report.delayed_plans}",
        f"Generated on: {stamp}",
    ]
    return "\n".join(lines)
