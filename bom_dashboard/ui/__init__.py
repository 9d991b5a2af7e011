"""
UI 계층

Streamlit 화면 구성 요소(요약 카드, 차트, 부품 테이블)와
도메인 예외 → 사용자 메시지 어댑터를 제공합니다.
"""

from .adapters import handle_domain_errors
from .cards import SummaryCard, build_summary_cards, render_metric_row, render_summary_cards
from .charts import (
    completion_distribution_figure,
    decline_figure,
    plan_forecast_figure,
    planned_start_figure,
    render_figure,
)
from .tables import (
    EditField,
    ItemEdit,
    apply_item_edits,
    build_editor_frame,
    diff_item_edits,
    month_options,
    render_export_buttons,
    render_item_table,
    render_search_input,
    render_search_suggestions,
    render_sort_controls,
    report_edit_results,
    reset_item_table,
)

__all__ = [
    "handle_domain_errors",
    # 카드
    "SummaryCard",
    "build_summary_cards",
    "render_summary_cards",
    "render_metric_row",
    # 차트
    "completion_distribution_figure",
    "decline_figure",
    "plan_forecast_figure",
    "planned_start_figure",
    "render_figure",
    # 테이블
    "EditField",
    "ItemEdit",
    "apply_item_edits",
    "build_editor_frame",
    "diff_item_edits",
    "month_options",
    "render_item_table",
    "render_search_input",
    "render_search_suggestions",
    "render_sort_controls",
    "render_export_buttons",
    "report_edit_results",
    "reset_item_table",
]
