"""Analytics helpers for the BoM transfer dashboard."""

from .export import (
    CSV_MIME_TYPE,
    EXCEL_MIME_TYPE,
    ExportView,
    build_export_frame,
    export_filename,
    format_cell,
    to_csv_bytes,
    to_excel_bytes,
)
from .monthly import (
    bucket_by_month,
    completion_distribution,
    completion_month,
    decline_trajectory,
    parse_month,
    plan_forecast,
    planned_start_schedule,
    remaining_trajectory,
)
from .summary import (
    BomSummary,
    ReportSummary,
    Totals,
    build_report,
    build_report_text,
    completion_rate,
    delayed_plan_count,
    summarize,
)
from .views import SortDirection, SortField, TabView, build_tab_view, sort_items, toggle_sort

__all__ = [
    # 뷰
    "SortField",
    "SortDirection",
    "TabView",
    "sort_items",
    "toggle_sort",
    "build_tab_view",
    # 요약
    "Totals",
    "BomSummary",
    "ReportSummary",
    "summarize",
    "completion_rate",
    "delayed_plan_count",
    "build_report",
    "build_report_text",
    # 월별
    "parse_month",
    "completion_month",
    "bucket_by_month",
    "completion_distribution",
    "plan_forecast",
    "planned_start_schedule",
    "decline_trajectory",
    "remaining_trajectory",
    # 내보내기
    "ExportView",
    "EXCEL_MIME_TYPE",
    "CSV_MIME_TYPE",
    "format_cell",
    "build_export_frame",
    "to_excel_bytes",
    "to_csv_bytes",
    "export_filename",
]
