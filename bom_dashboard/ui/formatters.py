"""표시용 포맷팅 유틸리티 모듈.

숫자, 날짜, 이관 상태 배지 등의 포맷팅 함수를 제공합니다.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

from bom_dashboard.common.data_utils import parse_timestamp
from bom_dashboard.domain.models import TransferStatus

# 이관 상태별 배지 색상
STATUS_COLORS = {
    TransferStatus.NOT_START: "#64748B",
    TransferStatus.IN_PROGRESS: "#4F46E5",
    TransferStatus.FINISHED: "#059669",
    TransferStatus.TEMPORARY_USAGE: "#D97706",
    TransferStatus.NOT_TO_TRANSFER: "#DC2626",
}


def escape(value: object) -> str:
    """HTML 이스케이프 처리를 수행합니다."""
    return (
        str(value or "")
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def format_number(value: float | int | None) -> str:
    """숫자를 천 단위 구분 기호가 있는 문자열로 포맷팅합니다.

    Returns:
        "1,234" 형식의 문자열 또는 "-"
    """
    if value is None:
        return "-"
    if isinstance(value, float) and pd.isna(value):
        return "-"
    try:
        return f"{int(round(float(value))):,}"
    except (TypeError, ValueError):
        return "-"


def format_price(value: float | None) -> str:
    if value is None or pd.isna(value):
        return "-"
    return f"${float(value):,.2f}"


def format_date(value: object, fmt: str = "%Y-%m-%d") -> str:
    """ISO 날짜를 표시 형식으로 바꿉니다 (해석 불가 시 "-")."""

    ts = parse_timestamp(value)
    return "-" if ts is None else ts.strftime(fmt)


def format_month(value: object) -> str:
    return format_date(value, "%b %Y")


def status_badge(status: TransferStatus | str, label: Optional[str] = None) -> str:
    """이관 상태 배지 HTML."""

    parsed = TransferStatus.parse(status)
    color = STATUS_COLORS[parsed]
    text = escape(label or parsed.value)
    return (
        f'<span style="display:inline-block;padding:2px 10px;border-radius:999px;'
        f'background:{color}1A;color:{color};font-size:0.8em;font-weight:600;">{text}</span>'
    )
