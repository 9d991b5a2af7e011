"""
BoM Transfer Dashboard 메인 엔트리 포인트

실행: streamlit run bom_app.py

화면 구성:
- 사이드바: 탭 선택, Kanban 필터, Current BoM 구성, 동기화 상태
- 상단: 요약 카드
- 탭: Completed / Plan (In Progress) / Current BoM / Remaining in AU / Report
"""

from __future__ import annotations

import logging
from typing import Sequence

import pandas as pd
import streamlit as st

# 로깅 설정
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

from bom_dashboard.analytics import (
    ExportView,
    build_report_text,
    build_tab_view,
    completion_distribution,
    completion_rate,
    delayed_plan_count,
    plan_forecast,
    planned_start_schedule,
    remaining_trajectory,
    summarize,
)
from bom_dashboard.common.data_utils import format_currency
from bom_dashboard.core.config import CONFIG
from bom_dashboard.data_sources import CollectionStats, LiveBomCollection, ensure_collection
from bom_dashboard.domain import (
    BomItem,
    CurrentBomComposition,
    KanbanFilter,
    TransferStatus,
    current_bom_items,
    filter_by_kanban,
    filter_by_status,
)
from bom_dashboard.ui import (
    EditField,
    ItemEdit,
    apply_item_edits,
    completion_distribution_figure,
    decline_figure,
    handle_domain_errors,
    month_options,
    plan_forecast_figure,
    planned_start_figure,
    render_export_buttons,
    render_figure,
    render_item_table,
    render_metric_row,
    render_search_input,
    render_search_suggestions,
    render_sort_controls,
    render_summary_cards,
    report_edit_results,
    reset_item_table,
)

TABS = {
    "completed": ("Completed", "Finished parts by latest domestic buy date"),
    "plan": ("Plan (In Progress)", "Expected completion by month"),
    "current": ("Current BoM", "Parts still to transfer and their planned start"),
    "remaining": ("Remaining in AU", "Not to Transfer items with reason and brand"),
    "report": ("Report", "Generate portfolio snapshot"),
}

_COMPOSITION_LABELS = {
    CurrentBomComposition.NOT_STARTED: "Not Start only",
    CurrentBomComposition.TARGET_TO_TRANSFER: "Not Start + In Progress",
    CurrentBomComposition.OPEN_INCLUDING_HOLD: "Not Start + In Progress + Not to Transfer",
}


def _render_sidebar(collection: LiveBomCollection) -> dict[str, object]:
    """사이드바를 렌더링하고 선택된 값들을 반환합니다."""

    with st.sidebar:
        st.header("BoM Transfer")
        tab = st.radio(
            "View",
            list(TABS),
            format_func=lambda key: TABS[key][0],
            key="active_tab",
        )
        st.caption(TABS[tab][1])

        st.divider()
        st.header("Filters")
        kanban = st.radio(
            "Kanban",
            [KanbanFilter.ALL, KanbanFilter.KANBAN, KanbanFilter.NON_KANBAN],
            format_func=lambda mode: {"all": "All parts", "kanban": "Kanban", "non-kanban": "Non-Kanban"}[mode.value],
            key="kanban_filter",
            horizontal=True,
        )
        default_composition = CurrentBomComposition.from_name(
            CONFIG.analytics.current_bom_composition
        )
        compositions = list(CurrentBomComposition)
        composition = st.selectbox(
            "Current BoM includes",
            compositions,
            index=compositions.index(default_composition),
            format_func=lambda c: _COMPOSITION_LABELS[c],
            key="current_bom_composition",
        )

        st.divider()
        stats = CollectionStats.from_state(collection.state)
        st.caption(
            f"Sync: {stats.status} • {stats.item_count} parts"
            + (f" • updated {stats.updated_at}" if stats.updated_at else "")
        )
        if st.button("🔄 Refresh view", key="sidebar_refresh", use_container_width=True):
            st.rerun()

    return {"tab": tab, "kanban": kanban, "composition": composition}


def _handle_edits(collection: LiveBomCollection, key: str, edits: Sequence[ItemEdit]) -> None:
    """편집 내용을 저장하고, 모두 성공하면 다음 스냅샷을 잠시 기다린 뒤 다시 그립니다."""

    if not edits:
        return
    version = collection.state.version
    results = apply_item_edits(collection, edits)
    report_edit_results(results)
    reset_item_table(key)
    if all(ok for _, ok in results):
        collection.wait_for(lambda s: s.version > version, timeout=3)
        st.rerun()


def _render_item_section(
    collection: LiveBomCollection,
    items: Sequence[BomItem],
    statuses: Sequence[TransferStatus],
    *,
    key: str,
    title: str,
    kanban: KanbanFilter,
    edit_fields: Sequence[EditField],
    export_view: ExportView,
    today: pd.Timestamp,
) -> None:
    st.subheader(title)
    search_col, sort_col = st.columns([1, 2])
    with search_col:
        query = render_search_input(key)
    with sort_col:
        sort_field, sort_direction = render_sort_controls("sort")

    view = build_tab_view(
        items,
        statuses,
        query,
        sort_field,
        sort_direction,
        kanban,
        kanban_tokens=CONFIG.analytics.kanban_tokens,
        suggestion_limit=CONFIG.analytics.search_suggestion_limit,
    )
    if view.query and view.suggestions:
        render_search_suggestions(key, [s for s in view.suggestions if s != view.query])

    edits = render_item_table(
        view,
        key=key,
        edit_fields=edit_fields,
        month_values=month_options(today),
    )
    render_export_buttons(list(view.items), export_view, key=key, today=today)
    _handle_edits(collection, key, edits)


def _render_completed(collection, items, *, kanban, today) -> None:
    summary = summarize(items, CONFIG.analytics.kanban_tokens)
    year = today.year
    buckets = completion_distribution(items, year=year, now=today)
    closed = int(buckets["count"].sum()) if not buckets.empty else 0
    saved = float(buckets["total_value"].sum()) if not buckets.empty else 0.0

    render_metric_row(
        {
            f"{year} parts closed": f"{closed:,}",
            f"{year} value saved": format_currency(saved),
            "Completion rate": f"{completion_rate(summary)}%",
        }
    )
    left, right = st.columns(2)
    with left:
        render_figure(completion_distribution_figure(buckets), key="chart_completed")
    with right:
        trajectory = remaining_trajectory(buckets, len(items), today)
        render_figure(decline_figure(trajectory, title="Remaining parts after completions"), key="chart_decline")

    _render_item_section(
        collection,
        items,
        [TransferStatus.FINISHED],
        key="completed",
        title="Completed parts",
        kanban=kanban,
        edit_fields=[EditField.STATUS],
        export_view=ExportView.TRANSFER_STATUS,
        today=today,
    )


def _render_plan(collection, items, *, kanban, today) -> None:
    plan = filter_by_status(items, [TransferStatus.IN_PROGRESS])
    render_metric_row(
        {
            "Parts in progress": f"{len(plan):,}",
            "Value in progress": format_currency(sum(item.value for item in plan)),
            "Delayed plans": f"{delayed_plan_count(items, today):,}",
        }
    )
    render_figure(plan_forecast_figure(plan_forecast(items, today)), key="chart_plan")

    _render_item_section(
        collection,
        items,
        [TransferStatus.IN_PROGRESS],
        key="plan",
        title="In progress",
        kanban=kanban,
        edit_fields=[EditField.STATUS, EditField.EXPECTED_COMPLETION],
        export_view=ExportView.HOLD_DETAIL,
        today=today,
    )


def _render_current(collection, items, *, kanban, composition, today) -> None:
    current = current_bom_items(items, composition)
    schedule = planned_start_schedule(items, today, composition)
    trajectory = remaining_trajectory(schedule, len(current), today)

    render_metric_row(
        {
            "Current BoM parts": f"{len(current):,}",
            "Current BoM value": format_currency(sum(item.value for item in current)),
            "Parts with planned start": f"{int(schedule['count'].sum()) if not schedule.empty else 0:,}",
        }
    )
    render_figure(planned_start_figure(trajectory), key="chart_planned_start")

    _render_item_section(
        collection,
        items,
        composition.statuses,
        key="current",
        title="Current BoM",
        kanban=kanban,
        edit_fields=[EditField.STATUS, EditField.PLANNED_START],
        export_view=ExportView.HOLD_DETAIL,
        today=today,
    )


def _render_remaining(collection, items, *, kanban, today) -> None:
    holds = filter_by_status(items, [TransferStatus.NOT_TO_TRANSFER])
    missing = sum(1 for item in holds if not item.not_to_transfer_reason)
    render_metric_row(
        {
            "Not to Transfer parts": f"{len(holds):,}",
            "Held value": format_currency(sum(item.value for item in holds)),
            "Missing reason": f"{missing:,}",
        }
    )
    _render_item_section(
        collection,
        items,
        [TransferStatus.NOT_TO_TRANSFER],
        key="remaining",
        title="Hold detail",
        kanban=kanban,
        edit_fields=[EditField.STATUS, EditField.NOT_TO_TRANSFER_REASON, EditField.BRAND],
        export_view=ExportView.HOLD_DETAIL,
        today=today,
    )


def _render_report(items, *, kanban, composition, now) -> None:
    scoped = filter_by_kanban(items, kanban, tokens=CONFIG.analytics.kanban_tokens)
    report = build_report_text(scoped, now, composition)
    st.subheader("Portfolio snapshot")
    st.code(report, language=None)
    st.download_button(
        "Download report",
        data=report.encode("utf-8"),
        file_name=f"bom-report-{now.strftime('%Y-%m-%d')}.txt",
        mime="text/plain",
        key="report_download",
    )
    render_export_buttons(scoped, ExportView.HOLD_DETAIL, key="report", today=now)


def main() -> None:
    """대시보드 메인 함수."""

    st.set_page_config(page_title="BoM Transfer Dashboard", layout="wide")
    st.title("BoM Transfer Dashboard")

    # ========================================
    # 1단계: 실시간 컬렉션 연결
    # ========================================
    with handle_domain_errors():
        collection, state = ensure_collection()

        if state.is_loading:
            st.info("Waiting for the first BoM snapshot...")
            return
        if state.is_error:
            logger.error(f"Collection error: {state.error}")
            st.error(state.error or "Failed to fetch data from Firebase")
            return

        items = list(state.items)
        logger.info(f"Rendering dashboard with {len(items)} parts (v{state.version})")

        # ========================================
        # 2단계: 사이드바 & 요약 카드
        # ========================================
        filters = _render_sidebar(collection)
        kanban = filters["kanban"]
        composition = filters["composition"]
        now = pd.Timestamp.now(tz="UTC")
        today = now.tz_convert(None).normalize()

        render_summary_cards(summarize(items, CONFIG.analytics.kanban_tokens))

        # ========================================
        # 3단계: 탭 렌더링
        # ========================================
        tab = filters["tab"]
        if tab == "completed":
            _render_completed(collection, items, kanban=kanban, today=today)
        elif tab == "plan":
            _render_plan(collection, items, kanban=kanban, today=today)
        elif tab == "current":
            _render_current(collection, items, kanban=kanban, composition=composition, today=today)
        elif tab == "remaining":
            _render_remaining(collection, items, kanban=kanban, today=today)
        else:
            _render_report(items, kanban=kanban, composition=composition, now=now)


if __name__ == "__main__":
    main()
