"""공통 데이터 처리 유틸리티 함수 모듈.

날짜 파싱과 금액/수량 표시 형식처럼 집계 계층과 UI 계층이
함께 사용하는 변환 함수를 제공합니다.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional

import pandas as pd


def parse_timestamp(value: object) -> Optional[pd.Timestamp]:
    """ISO 날짜 문자열을 시간대 없는 UTC 기준 Timestamp로 변환합니다.

    빈 값이나 해석할 수 없는 값은 None을 반환합니다.

    Examples:
        >>> parse_timestamp("2025-03-15")
        Timestamp('2025-03-15 00:00:00')
        >>> parse_timestamp("not a date") is None
        True
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, (pd.Timestamp, datetime, date)):
        ts = pd.Timestamp(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            ts = pd.to_datetime(text, errors="coerce")
        except (TypeError, ValueError, OverflowError):
            return None
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def to_naive_utc(moment: object) -> pd.Timestamp:
    """비교 기준 시각을 시간대 없는 UTC Timestamp로 맞춥니다."""

    ts = pd.Timestamp(moment)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def month_start(value: object) -> Optional[pd.Timestamp]:
    """날짜가 속한 달의 1일 0시를 반환합니다 (해석 불가 시 None)."""

    ts = parse_timestamp(value)
    if ts is None:
        return None
    return ts.to_period("M").to_timestamp()


def month_label(ts: pd.Timestamp) -> str:
    return ts.strftime("%b %Y")


def round_half_up(value: float) -> int:
    """0.5를 올림하는 반올림 (파이썬 round()의 은행가 반올림 대신 사용)."""

    return int(math.floor(value + 0.5))


def format_currency(value: float) -> str:
    """금액을 $1.2M / $3.4K / $512.00 형식으로 표시합니다."""

    if value is None or not math.isfinite(value):
        return "$0.00"
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    if magnitude >= 1_000_000:
        return f"{sign}${magnitude / 1_000_000:.1f}M"
    if magnitude >= 1_000:
        return f"{sign}${magnitude / 1_000:.1f}K"
    return f"{sign}${magnitude:,.2f}"


def format_compact_number(value: float) -> str:
    """차트 축 눈금용 축약 숫자 (1.2M, 3.4K, 512)."""

    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    if magnitude >= 1_000_000:
        return f"{sign}{magnitude / 1_000_000:.1f}M"
    if magnitude >= 1_000:
        return f"{sign}{magnitude / 1_000:.1f}K"
    if float(value).is_integer():
        return f"{int(value)}"
    return f"{value}"
