"""
공통 유틸리티 모듈

이 패키지는 여러 모듈에서 공통으로 사용하는 유틸리티 함수를 제공합니다.
"""

from .data_utils import (
    format_compact_number,
    format_currency,
    month_label,
    month_start,
    parse_timestamp,
    round_half_up,
    to_naive_utc,
)
from .performance import PerformanceContext, measure_time_context

__all__ = [
    "PerformanceContext",
    "measure_time_context",
    "parse_timestamp",
    "to_naive_utc",
    "month_start",
    "month_label",
    "round_half_up",
    "format_currency",
    "format_compact_number",
]
