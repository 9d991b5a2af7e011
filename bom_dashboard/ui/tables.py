"""
테이블 렌더링 모듈

이 모듈은 탭별 부품 테이블(st.data_editor)과 검색/정렬/내보내기 컨트롤을
렌더링하고, 사용자가 편집한 셀을 컬렉션 갱신 호출로 변환합니다.

편집 결과는 화면에 바로 반영하지 않습니다. 원격 쓰기가 끝나면
다음 스냅샷이 도착할 때 테이블이 새 값으로 다시 그려집니다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Sequence

import pandas as pd
import streamlit as st

from bom_dashboard.analytics.export import (
    CSV_MIME_TYPE,
    EXCEL_MIME_TYPE,
    ExportView,
    build_export_frame,
    export_filename,
    to_csv_bytes,
    to_excel_bytes,
)
from bom_dashboard.analytics.monthly import parse_month
from bom_dashboard.analytics.views import SortDirection, SortField, TabView, toggle_sort
from bom_dashboard.common.data_utils import month_label
from bom_dashboard.core.config import CONFIG
from bom_dashboard.domain.models import STATUS_ORDER, BomItem

logger = logging.getLogger(__name__)


# ============================================================
# 편집 모델
# ============================================================

class EditField(str, Enum):
    """테이블에서 편집할 수 있는 컬럼."""

    STATUS = "transfer_status"
    EXPECTED_COMPLETION = "expected_completion"
    PLANNED_START = "planned_start"
    NOT_TO_TRANSFER_REASON = "not_to_transfer_reason"
    BRAND = "brand"


@dataclass(frozen=True)
class ItemEdit:
    """
    부품 한 건에 대한 갱신 요청 하나.

    kind가 NOT_TO_TRANSFER_REASON이면 reason과 brand를 항상 함께 보냅니다.
    """

    component_material: str
    kind: EditField
    value: Optional[str] = None
    reason: Optional[str] = None
    brand: Optional[str] = None


BASE_COLUMNS = [
    "image_url",
    "component_material",
    "description_en",
    "kanban_flag",
    "latest_component_date",
    "standard_price",
    "total_qty",
    "value",
    "transfer_status",
]


def month_options(today: object, span: Optional[int] = None) -> dict[str, str]:
    """
    월 선택 목록 (작년 1월부터 span개월).

    Returns:
        {"Jan 2024": "2024-01-01", ...} 순서 있는 딕셔너리
    """
    span = CONFIG.ui.month_selector_span if span is None else span
    start = pd.Timestamp(year=pd.Timestamp(today).year - 1, month=1, day=1)
    months = pd.date_range(start, periods=span, freq="MS")
    return {month_label(m): m.strftime("%Y-%m-%d") for m in months}


def _month_cell(value: object) -> str:
    month = parse_month(value)
    return "" if month is None else month_label(month)


def build_editor_frame(
    items: Sequence[BomItem],
    edit_fields: Sequence[EditField] = (),
) -> pd.DataFrame:
    """
    data_editor에 넘길 DataFrame을 만듭니다.

    날짜 편집 컬럼은 "Mar 2025" 같은 월 라벨로 표시합니다.
    """
    extra = [f.value for f in edit_fields if f is not EditField.STATUS]
    columns = BASE_COLUMNS + extra
    rows = []
    for item in items:
        row: dict[str, object] = {
            "image_url": item.image_url,
            "component_material": item.component_material,
            "description_en": item.description_en,
            "kanban_flag": item.kanban_flag,
            "latest_component_date": item.latest_component_date,
            "standard_price": item.standard_price,
            "total_qty": item.total_qty,
            "value": item.value,
            "transfer_status": item.transfer_status.value,
        }
        if EditField.EXPECTED_COMPLETION.value in extra:
            row["expected_completion"] = _month_cell(item.expected_completion)
        if EditField.PLANNED_START.value in extra:
            row["planned_start"] = _month_cell(item.planned_start)
        if EditField.NOT_TO_TRANSFER_REASON.value in extra:
            row["not_to_transfer_reason"] = item.not_to_transfer_reason
        if EditField.BRAND.value in extra:
            row["brand"] = item.brand
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def _month_value(label: str, month_values: Mapping[str, str]) -> Optional[str]:
    if not label:
        return None
    if label in month_values:
        return month_values[label]
    parsed = parse_month(label)
    return None if parsed is None else parsed.strftime("%Y-%m-%d")


def diff_item_edits(
    items: Sequence[BomItem],
    edited: pd.DataFrame,
    *,
    month_values: Mapping[str, str] | None = None,
) -> list[ItemEdit]:
    """
    편집된 테이블과 원래 부품 목록을 비교해 갱신 요청 목록을 만듭니다.

    Args:
        items: 테이블을 만들 때 사용한 부품 목록
        edited: data_editor가 반환한 DataFrame
        month_values: 월 라벨 → ISO 날짜 매핑 (month_options)

    Returns:
        ItemEdit 목록 (테이블 행 순서, 한 행 안에서는 상태 → 날짜 → 사유/브랜드 순)
    """
    month_values = month_values or {}
    by_key = {item.component_material: item for item in items}
    columns = set(edited.columns)
    edits: list[ItemEdit] = []

    for row in edited.to_dict(orient="records"):
        key = _text(row.get("component_material"))
        item = by_key.get(key)
        if item is None:
            continue

        if EditField.STATUS.value in columns:
            new_status = _text(row.get(EditField.STATUS.value))
            if new_status and new_status != item.transfer_status.value:
                edits.append(ItemEdit(key, EditField.STATUS, value=new_status))

        for field, current in (
            (EditField.EXPECTED_COMPLETION, item.expected_completion),
            (EditField.PLANNED_START, item.planned_start),
        ):
            if field.value not in columns:
                continue
            new_label = _text(row.get(field.value))
            if new_label != _month_cell(current):
                edits.append(ItemEdit(key, field, value=_month_value(new_label, month_values)))

        has_reason = EditField.NOT_TO_TRANSFER_REASON.value in columns
        has_brand = EditField.BRAND.value in columns
        if has_reason or has_brand:
            reason = (
                _text(row.get(EditField.NOT_TO_TRANSFER_REASON.value))
                if has_reason else item.not_to_transfer_reason
            )
            brand = _text(row.get(EditField.BRAND.value)) if has_brand else item.brand
            if reason != item.not_to_transfer_reason or brand != item.brand:
                edits.append(
                    ItemEdit(key, EditField.NOT_TO_TRANSFER_REASON, reason=reason, brand=brand)
                )

    return edits


def apply_item_edits(collection, edits: Sequence[ItemEdit]) -> list[tuple[ItemEdit, bool]]:
    """갱신 요청을 컬렉션 메서드 호출로 실행하고 (요청, 성공 여부) 목록을 반환합니다."""

    results: list[tuple[ItemEdit, bool]] = []
    for edit in edits:
        if edit.kind is EditField.STATUS:
            ok = collection.update_status(edit.component_material, edit.value)
        elif edit.kind is EditField.EXPECTED_COMPLETION:
            ok = collection.update_expected_completion(edit.component_material, edit.value)
        elif edit.kind is EditField.PLANNED_START:
            ok = collection.update_planned_start(edit.component_material, edit.value)
        else:
            ok = collection.update_not_to_transfer_details(
                edit.component_material, edit.reason, edit.brand
            )
        results.append((edit, ok))
    return results


# ============================================================
# Streamlit 위젯
# ============================================================

def _column_config(edit_fields: Sequence[EditField], months: Sequence[str]) -> dict:
    config = {
        "image_url": st.column_config.ImageColumn("Image", width="small"),
        "component_material": st.column_config.TextColumn("Component Material"),
        "description_en": st.column_config.TextColumn("Description (EN)", width="large"),
        "kanban_flag": st.column_config.TextColumn("Kanban"),
        "latest_component_date": st.column_config.TextColumn("Latest Buy"),
        "standard_price": st.column_config.NumberColumn("Unit Price", format="$%.2f"),
        "total_qty": st.column_config.NumberColumn("Total Qty", format="%d"),
        "value": st.column_config.NumberColumn("Value", format="$%.2f"),
        "transfer_status": st.column_config.SelectboxColumn(
            "Transfer Status",
            options=[s.value for s in STATUS_ORDER],
            required=True,
        ),
    }
    if EditField.EXPECTED_COMPLETION in edit_fields:
        config["expected_completion"] = st.column_config.SelectboxColumn(
            "Expected Completion", options=list(months)
        )
    if EditField.PLANNED_START in edit_fields:
        config["planned_start"] = st.column_config.SelectboxColumn(
            "Planned Start", options=list(months)
        )
    if EditField.NOT_TO_TRANSFER_REASON in edit_fields:
        config["not_to_transfer_reason"] = st.column_config.TextColumn(
            "Not To Transfer Reason", width="large"
        )
    if EditField.BRAND in edit_fields:
        config["brand"] = st.column_config.TextColumn("Brand")
    return config


def render_item_table(
    view: TabView,
    *,
    key: str,
    edit_fields: Sequence[EditField] = (EditField.STATUS,),
    month_values: Mapping[str, str] | None = None,
) -> list[ItemEdit]:
    """
    부품 테이블을 렌더링하고 사용자 편집을 갱신 요청으로 반환합니다.

    편집 위젯 상태는 세션의 버전 번호로 초기화합니다 (reset_item_table).
    """
    if not view.items:
        st.info("No parts match the current filters.")
        return []

    month_values = dict(month_values or {})
    frame = build_editor_frame(view.items, edit_fields)
    for field in (EditField.EXPECTED_COMPLETION, EditField.PLANNED_START):
        if field.value in frame.columns:
            # 저장된 값이 선택 범위 밖이어도 목록에 보이도록 추가
            for label in frame[field.value]:
                if label and label not in month_values:
                    month_values[label] = _month_value(label, {}) or ""

    editable = {f.value for f in edit_fields}
    disabled = [c for c in frame.columns if c not in editable]
    version = st.session_state.get(f"{key}_editor_version", 0)

    edited = st.data_editor(
        frame,
        key=f"{key}_editor_{version}",
        hide_index=True,
        use_container_width=True,
        height=CONFIG.ui.table_height,
        disabled=disabled,
        column_config=_column_config(edit_fields, list(month_values)),
    )
    st.caption(f"Showing {view.shown_count} of {view.total_count} parts")
    return diff_item_edits(view.items, edited, month_values=month_values)


def reset_item_table(key: str) -> None:
    st.session_state[f"{key}_editor_version"] = st.session_state.get(f"{key}_editor_version", 0) + 1


def render_search_input(key: str, *, label: str = "Search", placeholder: str = "Filter by code or description") -> str:
    """검색창을 렌더링하고 현재 검색어를 반환합니다."""

    return st.text_input(label, key=f"{key}_search", placeholder=placeholder)


def render_search_suggestions(key: str, suggestions: Sequence[str]) -> None:
    """검색 추천어 버튼. 누르면 검색어를 추천어로 바꾸고 다시 실행합니다."""

    if not suggestions:
        return

    def _select(value: str) -> None:
        st.session_state[f"{key}_search"] = value

    columns = st.columns(min(len(suggestions), 3))
    for index, suggestion in enumerate(suggestions):
        columns[index % len(columns)].button(
            suggestion,
            key=f"{key}_suggestion_{index}",
            on_click=_select,
            args=(suggestion,),
            use_container_width=True,
        )


def render_sort_controls(key: str = "sort", *, title: str = "Sort by") -> tuple[SortField, SortDirection]:
    """
    정렬 버튼을 렌더링하고 (정렬 필드, 방향)을 반환합니다.

    같은 버튼을 다시 누르면 방향이 바뀌고, 다른 버튼을 누르면 내림차순으로 시작합니다.
    """
    field_key = f"{key}_field"
    direction_key = f"{key}_direction"
    st.session_state.setdefault(field_key, SortField.VALUE.value)
    st.session_state.setdefault(direction_key, SortDirection.DESC.value)

    def _clicked(clicked: SortField) -> None:
        field, direction = toggle_sort(
            st.session_state[field_key], st.session_state[direction_key], clicked
        )
        st.session_state[field_key] = field.value
        st.session_state[direction_key] = direction.value

    def _flip() -> None:
        st.session_state[direction_key] = SortDirection(st.session_state[direction_key]).flipped().value

    current_field = SortField(st.session_state[field_key])
    current_direction = SortDirection(st.session_state[direction_key])

    st.caption(title)
    columns = st.columns(len(SortField) + 1)
    for column, field in zip(columns, SortField):
        arrow = ""
        if field is current_field:
            arrow = " ↑" if current_direction is SortDirection.ASC else " ↓"
        column.button(
            f"{field.label}{arrow}",
            key=f"{key}_btn_{field.value}",
            on_click=_clicked,
            args=(field,),
            type="primary" if field is current_field else "secondary",
            use_container_width=True,
        )
    columns[-1].button(
        "Low to High" if current_direction is SortDirection.ASC else "High to Low",
        key=f"{key}_btn_flip",
        on_click=_flip,
        use_container_width=True,
    )
    return current_field, current_direction


def render_export_buttons(
    items: Sequence[BomItem],
    view: ExportView,
    *,
    key: str,
    today: object,
) -> None:
    """현재 걸러진 부품 목록의 .xls / .csv 다운로드 버튼. 목록이 비면 비활성화합니다."""

    frame = build_export_frame(items, view)
    day = pd.Timestamp(today).date()
    xls_col, csv_col = st.columns(2)
    xls_col.download_button(
        "Export to Excel",
        data=to_excel_bytes(frame),
        file_name=export_filename(view, day, "xls"),
        mime=EXCEL_MIME_TYPE,
        key=f"{key}_export_xls",
        disabled=frame.empty,
        use_container_width=True,
    )
    csv_col.download_button(
        "Export CSV",
        data=to_csv_bytes(frame),
        file_name=export_filename(view, day, "csv"),
        mime=CSV_MIME_TYPE,
        key=f"{key}_export_csv",
        disabled=frame.empty,
        use_container_width=True,
    )


def report_edit_results(results: Sequence[tuple[ItemEdit, bool]]) -> None:
    """갱신 결과를 토스트/에러 메시지로 알립니다."""

    for edit, ok in results:
        label = edit.kind.value.replace("_", " ")
        if ok:
            st.toast(f"Saved {label} for {edit.component_material}")
        else:
            logger.warning(f"Write failed: {edit}")
            st.error(f"❌ Failed to update {label} for {edit.component_material}. Please retry.")

