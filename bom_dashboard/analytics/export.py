"""부품 목록 내보내기 (Excel 호환 HTML 표, CSV).

Excel은 BOM이 붙은 HTML 표를 .xls 파일로 열 수 있으므로
별도의 엑셀 라이브러리 없이 바이트를 만들어 다운로드 버튼에 넘깁니다.
"""

from __future__ import annotations

import html
import math
from datetime import date
from enum import Enum
from numbers import Number
from typing import Sequence

import numpy as np
import pandas as pd

from bom_dashboard.common.performance import measure_time_context
from bom_dashboard.domain.models import BomItem

EXCEL_MIME_TYPE = "application/vnd.ms-excel"
CSV_MIME_TYPE = "text/csv"

_BASE_HEADERS = [
    "Component Material",
    "Description (EN)",
    "Kanban Flag",
    "Latest Component Date",
    "Standard Price",
    "Total Quantity",
    "Value",
    "Transfer Status",
    "Status Updated At",
]

_HOLD_HEADERS = _BASE_HEADERS + [
    "Expected Completion",
    "Planned Start",
    "Not To Transfer Reason",
    "Brand",
]


class ExportView(str, Enum):
    TRANSFER_STATUS = "transfer_status"
    HOLD_DETAIL = "hold_detail"

    @property
    def headers(self) -> list[str]:
        return list(_HOLD_HEADERS if self is ExportView.HOLD_DETAIL else _BASE_HEADERS)

    @property
    def file_prefix(self) -> str:
        return "hold-detail" if self is ExportView.HOLD_DETAIL else "bom-transfer"


def format_cell(value: object) -> str:
    """
    셀 값을 문자열로 변환합니다.

    None은 빈 문자열, 숫자는 지수 표기 없는 십진수 문자열이 됩니다.

    Examples:
        >>> format_cell(50.0)
        '50'
        >>> format_cell(0.000125)
        '0.000125'
        >>> format_cell(None)
        ''
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, Number):
        number = float(value)
        if not math.isfinite(number):
            return ""
        if isinstance(value, (int, np.integer)):
            return str(int(value))
        return np.format_float_positional(number, trim="-")
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _row(item: BomItem, view: ExportView) -> list[object]:
    row: list[object] = [
        item.component_material,
        item.description_en,
        item.kanban_flag,
        item.latest_component_date,
        item.standard_price,
        item.total_qty,
        item.value,
        item.transfer_status.value,
        item.status_updated_at,
    ]
    if view is ExportView.HOLD_DETAIL:
        row += [
            item.expected_completion,
            item.planned_start,
            item.not_to_transfer_reason,
            item.brand,
        ]
    return row


def build_export_frame(items: Sequence[BomItem], view: ExportView | str) -> pd.DataFrame:
    """
    내보낼 표를 문자열 DataFrame으로 만듭니다 (부품 한 건당 한 행).

    Args:
        items: 현재 화면에서 걸러진 부품 목록
        view: 내보내기 형식

    Returns:
        view.headers 컬럼을 가진 DataFrame. 모든 셀은 문자열입니다.
    """
    view = ExportView(view)
    rows = [[format_cell(value) for value in _row(item, view)] for item in items]
    return pd.DataFrame(rows, columns=view.headers, dtype=object)


def to_excel_bytes(frame: pd.DataFrame) -> bytes:
    """BOM이 붙은 HTML 표 (.xls). 행이 없으면 빈 바이트를 반환합니다."""

    if frame.empty:
        return b""

    with measure_time_context("excel export"):
        header = "".join(f"<th>{html.escape(str(col), quote=True)}</th>" for col in frame.columns)
        body = "".join(
            "<tr>"
            + "".join(f"<td>{html.escape(str(cell), quote=True)}</td>" for cell in row)
            + "</tr>"
            for row in frame.itertuples(index=False, name=None)
        )
        table = f"<table><thead><tr>{header}</tr></thead><tbody>{body}</tbody></table>"
    return ("\ufeff" + table).encode("utf-8")


def to_csv_bytes(frame: pd.DataFrame) -> bytes:
    """utf-8-sig CSV. 행이 없으면 빈 바이트를 반환합니다."""

    if frame.empty:
        return b""
    return frame.to_csv(index=False).encode("utf-8-sig")


def export_filename(view: ExportView | str, today: date, ext: str = "xls") -> str:
    """
    Examples:
        >>> export_filename(ExportView.HOLD_DETAIL, date(2025, 6, 1))
        'hold-detail-2025-06-01.xls'
    """
    return f"{ExportView(view).file_prefix}-{today.strftime('%Y-%m-%d')}.{ext.lstrip('.')}"
