"""
탭 목록 뷰 테스트

정렬 안정성, 날짜 정렬, 정렬 토글, 탭 목록 계산 순서를 테스트합니다.
"""
from __future__ import annotations

import pytest

from bom_dashboard.analytics.views import (
    SortDirection,
    SortField,
    build_tab_view,
    sort_items,
    toggle_sort,
)
from bom_dashboard.domain import BomItem, KanbanFilter, TransferStatus, normalize_records


def _codes(items):
    return [item.component_material for item in items]


# ============================================================
# 정렬
# ============================================================

@pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
def test_sort_is_stable_when_keys_are_equal(direction):
    items = [BomItem(code, standard_price=5.0, total_qty=1) for code in ["C", "A", "B"]]

    assert _codes(sort_items(items, SortField.VALUE, direction)) == ["C", "A", "B"]


def test_sort_by_value_both_directions():
    items = [
        BomItem("LOW", standard_price=1.0, total_qty=1),
        BomItem("HIGH", standard_price=10.0, total_qty=2),
        BomItem("MID", standard_price=5.0, total_qty=1),
    ]

    assert _codes(sort_items(items, "value", "desc")) == ["HIGH", "MID", "LOW"]
    assert _codes(sort_items(items, "value", "asc")) == ["LOW", "MID", "HIGH"]


def test_sort_by_quantity_and_price():
    items = [
        BomItem("A", standard_price=3.0, total_qty=1),
        BomItem("B", standard_price=1.0, total_qty=9),
    ]

    assert _codes(sort_items(items, SortField.TOTAL_QTY, SortDirection.DESC)) == ["B", "A"]
    assert _codes(sort_items(items, SortField.STANDARD_PRICE, SortDirection.DESC)) == ["A", "B"]


@pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
def test_undated_items_sort_last(direction):
    items = [
        BomItem("NONE"),
        BomItem("OLD", latest_component_date="2024-01-10"),
        BomItem("BAD", latest_component_date="not a date"),
        BomItem("NEW", latest_component_date="2025-05-02"),
    ]

    ordered = _codes(sort_items(items, SortField.LATEST_COMPONENT_DATE, direction))

    assert ordered[2:] == ["NONE", "BAD"]
    expected = ["OLD", "NEW"] if direction is SortDirection.ASC else ["NEW", "OLD"]
    assert ordered[:2] == expected


def test_sort_does_not_mutate_input():
    items = [BomItem("A", standard_price=1, total_qty=1), BomItem("B", standard_price=2, total_qty=1)]
    original = list(items)

    sort_items(items, SortField.VALUE, SortDirection.DESC)

    assert items == original


def test_toggle_sort():
    assert toggle_sort(SortField.VALUE, SortDirection.DESC, SortField.VALUE) == (
        SortField.VALUE,
        SortDirection.ASC,
    )
    assert toggle_sort("value", "asc", "value") == (SortField.VALUE, SortDirection.DESC)
    assert toggle_sort(SortField.VALUE, SortDirection.ASC, SortField.TOTAL_QTY) == (
        SortField.TOTAL_QTY,
        SortDirection.DESC,
    )


def test_sort_field_labels():
    assert SortField.LATEST_COMPONENT_DATE.label == "Latest buy date"
    assert all(field.label for field in SortField)


# ============================================================
# 탭 뷰
# ============================================================

def test_tab_view_applies_status_kanban_sort_and_query(raw_records):
    items = normalize_records(raw_records)

    view = build_tab_view(
        items,
        [TransferStatus.NOT_START, TransferStatus.IN_PROGRESS, TransferStatus.NOT_TO_TRANSFER],
        query="",
        sort_field=SortField.VALUE,
        sort_direction=SortDirection.DESC,
        kanban=KanbanFilter.NON_KANBAN,
    )

    assert _codes(view.items) == ["RES-200", "HOLD-400"]
    assert view.total_count == 2
    assert not view.is_filtered
    assert view.suggestions == ()


def test_tab_view_query_narrows_items_and_suggests(raw_records):
    items = normalize_records(raw_records)

    view = build_tab_view(items, list(TransferStatus), query="  res ")

    assert _codes(view.items) == ["RES-200"]
    assert view.query == "res"
    assert view.total_count == 4
    assert view.shown_count == 1
    assert view.is_filtered
    assert view.suggestions == ("RES-200", "Resistor 1k")


def test_tab_view_with_no_matching_status(raw_records):
    view = build_tab_view(normalize_records(raw_records), [TransferStatus.TEMPORARY_USAGE])

    assert view.items == ()
    assert view.total_count == 0
