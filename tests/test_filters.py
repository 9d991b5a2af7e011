"""
필터 함수 테스트

검색어, Kanban, 이관 상태 필터와 Current BoM 조합, 검색 추천어를 테스트합니다.
"""
from __future__ import annotations

import pytest

from bom_dashboard.domain import (
    STRICT_KANBAN_TOKENS,
    BomItem,
    CurrentBomComposition,
    KanbanFilter,
    TransferStatus,
    build_search_suggestions,
    current_bom_items,
    filter_by_kanban,
    filter_by_query,
    filter_by_status,
    normalize_records,
    partition_by_status,
)


@pytest.fixture
def items(raw_records):
    return normalize_records(raw_records)


def _codes(items):
    return [item.component_material for item in items]


# ============================================================
# 검색어 필터
# ============================================================

def test_query_matches_code_or_description_case_insensitive(items):
    assert _codes(filter_by_query(items, "cap")) == ["CAP-100"]
    assert _codes(filter_by_query(items, "MICRO")) == ["IC-300"]


def test_blank_query_returns_everything(items):
    assert _codes(filter_by_query(items, "   ")) == _codes(items)
    assert _codes(filter_by_query(items, None)) == _codes(items)


def test_query_without_match_is_empty(items):
    assert filter_by_query(items, "zzz") == []


# ============================================================
# Kanban 필터
# ============================================================

def test_kanban_filter_modes(items):
    assert _codes(filter_by_kanban(items, KanbanFilter.ALL)) == _codes(items)
    assert _codes(filter_by_kanban(items, KanbanFilter.KANBAN)) == ["CAP-100", "IC-300"]
    assert _codes(filter_by_kanban(items, "non-kanban")) == ["RES-200", "HOLD-400"]


def test_strict_kanban_tokens_only_accept_kanban(items):
    strict = filter_by_kanban(items, KanbanFilter.KANBAN, tokens=STRICT_KANBAN_TOKENS)

    assert _codes(strict) == ["CAP-100"]


# ============================================================
# 이관 상태
# ============================================================

def test_filter_by_status_keeps_order(items):
    selected = filter_by_status(items, [TransferStatus.NOT_TO_TRANSFER, TransferStatus.FINISHED])

    assert _codes(selected) == ["CAP-100", "HOLD-400"]


def test_partition_is_a_total_cover(items):
    buckets = partition_by_status(items)

    assert list(buckets) == list(TransferStatus)
    assert sum(len(bucket) for bucket in buckets.values()) == len(items)
    assert buckets[TransferStatus.TEMPORARY_USAGE] == []
    for status, bucket in buckets.items():
        assert all(item.transfer_status is status for item in bucket)


@pytest.mark.parametrize(
    "composition, expected",
    [
        (CurrentBomComposition.NOT_STARTED, ["IC-300"]),
        (CurrentBomComposition.TARGET_TO_TRANSFER, ["RES-200", "IC-300"]),
        ("open_including_hold", ["RES-200", "IC-300", "HOLD-400"]),
    ],
)
def test_current_bom_compositions(items, composition, expected):
    assert _codes(current_bom_items(items, composition)) == expected


def test_unknown_composition_name():
    with pytest.raises(ValueError):
        CurrentBomComposition.from_name("everything")


# ============================================================
# 검색 추천어
# ============================================================

def test_suggestions_are_unique_and_limited(items):
    suggestions = build_search_suggestions(items, "c", limit=3)

    assert suggestions == ["CAP-100", "Ceramic capacitor 10uF", "IC-300"]


def test_suggestions_skip_duplicates():
    items = [BomItem("CAP-1", description_en="Cap"), BomItem("CAP-2", description_en="Cap")]

    assert build_search_suggestions(items, "cap") == ["CAP-1", "Cap", "CAP-2"]


def test_blank_query_has_no_suggestions(items):
    assert build_search_suggestions(items, "") == []
