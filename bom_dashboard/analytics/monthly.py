"""월별 집계 및 잔여 부품 추이 계산 함수들.

Completed 탭의 완료 분포, Plan 탭의 완료 예정 분포, Current BoM 탭의
착수 예정 분포를 같은 방식(월 시작일 기준 버킷)으로 계산합니다.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import pandas as pd

from bom_dashboard.common.data_utils import month_label, month_start, to_naive_utc
from bom_dashboard.domain.filters import CurrentBomComposition, current_bom_items, filter_by_status
from bom_dashboard.domain.models import BomItem, TransferStatus

DateAccessor = Callable[[BomItem], object]

BUCKET_COLUMNS = ["month_start", "month", "count", "total_value", "delayed_count"]
TRAJECTORY_COLUMNS = ["month_start", "month", "events", "remaining", "remaining_after"]


def parse_month(value: object) -> Optional[pd.Timestamp]:
    """ISO 날짜 문자열을 해당 월의 시작일로 변환합니다.

    Examples:
        >>> parse_month("2025-03-15T08:30:00.000Z")
        Timestamp('2025-03-01 00:00:00')
        >>> parse_month("") is None
        True
    """
    return month_start(value)


def completion_month(item: BomItem) -> Optional[pd.Timestamp]:
    """완료 월: 최근 국내 구매일, 없으면 상태 변경 시각."""

    month = parse_month(item.latest_component_date)
    if month is None:
        month = parse_month(item.status_updated_at)
    return month


def _empty_buckets() -> pd.DataFrame:
    frame = pd.DataFrame(columns=BUCKET_COLUMNS)
    frame["month_start"] = pd.to_datetime(frame["month_start"])
    frame["month"] = frame["month"].astype(str)
    frame["count"] = frame["count"].astype(int)
    frame["total_value"] = frame["total_value"].astype(float)
    frame["delayed_count"] = frame["delayed_count"].astype(int)
    return frame


def bucket_by_month(
    items: Sequence[BomItem],
    date_of: DateAccessor,
    now: object,
) -> pd.DataFrame:
    """
    부품을 날짜 필드의 월 시작일 기준으로 묶어 집계합니다.

    Args:
        items: 집계할 부품 목록
        date_of: 부품에서 날짜 값을 꺼내는 함수 (문자열 또는 Timestamp)
        now: 지연 여부 판단 기준 시각

    Returns:
        month_start, month, count, total_value, delayed_count 컬럼을 가진
        DataFrame (month_start 오름차순). 날짜를 해석할 수 없는 부품은 제외됩니다.
    """
    reference = to_naive_utc(now)

    rows = []
    for item in items:
        start = parse_month(date_of(item))
        if start is None:
            continue
        rows.append(
            {
                "month_start": start,
                "value": item.value,
                "delayed": start < reference,
            }
        )

    if not rows:
        return _empty_buckets()

    frame = pd.DataFrame(rows)
    grouped = (
        frame.groupby("month_start", sort=True)
        .agg(
            count=("value", "size"),
            total_value=("value", "sum"),
            delayed_count=("delayed", "sum"),
        )
        .reset_index()
    )
    grouped["month"] = grouped["month_start"].map(month_label)
    grouped["count"] = grouped["count"].astype(int)
    grouped["total_value"] = grouped["total_value"].astype(float)
    grouped["delayed_count"] = grouped["delayed_count"].astype(int)
    return grouped[BUCKET_COLUMNS].reset_index(drop=True)


def completion_distribution(
    items: Sequence[BomItem],
    year: Optional[int] = None,
    now: object = None,
) -> pd.DataFrame:
    """Finished 부품의 월별 완료 건수/금액 (year를 주면 해당 연도만)."""

    finished = filter_by_status(items, [TransferStatus.FINISHED])
    if year is not None:
        months = [completion_month(item) for item in finished]
        finished = [
            item for item, month in zip(finished, months)
            if month is not None and month.year == year
        ]
    return bucket_by_month(
        finished,
        completion_month,
        pd.Timestamp.now(tz="UTC") if now is None else now,
    )


def plan_forecast(items: Sequence[BomItem], now: object) -> pd.DataFrame:
    """In Progress 부품의 완료 예정 월 분포 (지연 건수 포함)."""

    plan = filter_by_status(items, [TransferStatus.IN_PROGRESS])
    return bucket_by_month(plan, lambda item: item.expected_completion, now)


def planned_start_schedule(
    items: Sequence[BomItem],
    now: object,
    composition: CurrentBomComposition | str = CurrentBomComposition.NOT_STARTED,
) -> pd.DataFrame:
    """Current BoM 부품의 착수 예정 월 분포."""

    current = current_bom_items(items, composition)
    return bucket_by_month(current, lambda item: item.planned_start, now)


def decline_trajectory(baseline: int, counts: Sequence[int]) -> list[int]:
    """
    기준 수량에서 월별 건수를 차례로 빼 나간 잔여 수량을 계산합니다.

    잔여 수량은 0 아래로 내려가지 않으며, 음수 입력은 0으로 취급합니다.

    Examples:
        >>> decline_trajectory(10, [3, 4, 10])
        [7, 3, 0]
    """
    remaining = max(int(baseline), 0)
    trajectory: list[int] = []
    for count in counts:
        remaining = max(remaining - max(int(count), 0), 0)
        trajectory.append(remaining)
    return trajectory


def remaining_trajectory(
    buckets: pd.DataFrame,
    baseline: int,
    now: object,
) -> pd.DataFrame:
    """
    월별 버킷으로부터 잔여 부품 추이 차트 데이터를 만듭니다.

    버킷이 하나도 없으면 이번 달, 0건으로 된 행 하나를 만들어
    차트가 비지 않도록 합니다.

    Returns:
        month_start, month, events, remaining(해당 월 이전 잔여),
        remaining_after(해당 월 이후 잔여) 컬럼을 가진 DataFrame
    """
    if buckets is None or buckets.empty:
        current = to_naive_utc(now).to_period("M").to_timestamp()
        months = [current]
        events = [0]
    else:
        ordered = buckets.sort_values("month_start", kind="stable")
        months = list(ordered["month_start"])
        events = [int(c) for c in ordered["count"]]

    after = decline_trajectory(baseline, events)
    before = [max(int(baseline), 0)] + after[:-1]

    frame = pd.DataFrame(
        {
            "month_start": pd.to_datetime(months),
            "month": [month_label(m) for m in months],
            "events": events,
            "remaining": before,
            "remaining_after": after,
        }
    )
    return frame[TRAJECTORY_COLUMNS]
