"""탭별 부품 목록 뷰 계산.

각 탭은 같은 순서로 목록을 만듭니다:
이관 상태 필터 → Kanban 필터 → 정렬 → 검색어 필터 (+ 검색 추천어).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from bom_dashboard.common.data_utils import parse_timestamp
from bom_dashboard.domain.filters import (
    KanbanFilter,
    build_search_suggestions,
    filter_by_kanban,
    filter_by_query,
    filter_by_status,
)
from bom_dashboard.domain.models import KANBAN_TOKENS, BomItem, TransferStatus


class SortField(str, Enum):
    VALUE = "value"
    STANDARD_PRICE = "standard_price"
    TOTAL_QTY = "total_qty"
    LATEST_COMPONENT_DATE = "latest_component_date"

    @property
    def label(self) -> str:
        return _SORT_LABELS[self]


_SORT_LABELS = {
    SortField.VALUE: "Total value",
    SortField.STANDARD_PRICE: "Unit price",
    SortField.TOTAL_QTY: "Total qty",
    SortField.LATEST_COMPONENT_DATE: "Latest buy date",
}


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.ASC if self is SortDirection.DESC else SortDirection.DESC


def _sort_key(field: SortField) -> Callable[[BomItem], Optional[float]]:
    if field is SortField.VALUE:
        return lambda item: item.value
    if field is SortField.STANDARD_PRICE:
        return lambda item: item.standard_price
    if field is SortField.TOTAL_QTY:
        return lambda item: float(item.total_qty)

    def date_key(item: BomItem) -> Optional[float]:
        ts = parse_timestamp(item.latest_component_date)
        return None if ts is None else ts.value

    return date_key


def sort_items(
    items: Sequence[BomItem],
    field: SortField | str = SortField.VALUE,
    direction: SortDirection | str = SortDirection.DESC,
) -> list[BomItem]:
    """
    부품 목록을 정렬한 새 리스트를 반환합니다.

    정렬은 양방향 모두 안정적이므로 키가 같은 부품은 입력 순서를 유지합니다.
    날짜를 해석할 수 없는 부품은 방향과 관계없이 맨 뒤에 놓입니다.

    Examples:
        >>> items = [BomItem("A", standard_price=1), BomItem("B", standard_price=1)]
        >>> [i.component_material for i in sort_items(items, "standard_price", "desc")]
        ['A', 'B']
    """
    field = SortField(field)
    direction = SortDirection(direction)
    key = _sort_key(field)

    keyed = [(key(item), item) for item in items]
    present = [(k, item) for k, item in keyed if k is not None]
    missing = [item for k, item in keyed if k is None]

    # sorted(reverse=True)도 같은 키끼리는 원래 순서를 유지함
    ordered = sorted(present, key=lambda pair: pair[0], reverse=direction is SortDirection.DESC)
    return [item for _, item in ordered] + missing


def toggle_sort(
    current_field: SortField | str,
    current_direction: SortDirection | str,
    clicked: SortField | str,
) -> tuple[SortField, SortDirection]:
    """정렬 버튼 클릭: 같은 필드면 방향을 뒤집고, 다른 필드면 내림차순으로 시작합니다."""

    current_field = SortField(current_field)
    clicked = SortField(clicked)
    if clicked is current_field:
        return current_field, SortDirection(current_direction).flipped()
    return clicked, SortDirection.DESC


@dataclass(frozen=True)
class TabView:
    """탭 한 개에 표시할 부품 목록과 검색 상태."""

    items: tuple[BomItem, ...]
    suggestions: tuple[str, ...]
    total_count: int
    sort_field: SortField
    sort_direction: SortDirection
    query: str = ""

    @property
    def shown_count(self) -> int:
        return len(self.items)

    @property
    def is_filtered(self) -> bool:
        return self.shown_count != self.total_count


def build_tab_view(
    items: Sequence[BomItem],
    statuses: Iterable[TransferStatus | str],
    query: Optional[str] = "",
    sort_field: SortField | str = SortField.VALUE,
    sort_direction: SortDirection | str = SortDirection.DESC,
    kanban: KanbanFilter | str = KanbanFilter.ALL,
    *,
    kanban_tokens: Iterable[str] = KANBAN_TOKENS,
    suggestion_limit: int = 6,
) -> TabView:
    """
    탭 하나의 표시 목록을 계산합니다.

    Args:
        items: 컬렉션 전체 부품
        statuses: 탭에 포함할 이관 상태
        query: 검색어 (공백이면 전체)
        sort_field: 정렬 기준
        sort_direction: 정렬 방향
        kanban: Kanban 필터
        kanban_tokens: Kanban으로 인정하는 플래그 값
        suggestion_limit: 검색 추천어 최대 개수

    Returns:
        TabView. total_count는 검색어 적용 전 부품 수입니다.
    """
    in_tab = filter_by_status(items, statuses)
    in_tab = filter_by_kanban(in_tab, kanban, tokens=kanban_tokens)
    ordered = sort_items(in_tab, sort_field, sort_direction)
    shown = filter_by_query(ordered, query)
    suggestions = build_search_suggestions(ordered, query, limit=suggestion_limit)

    return TabView(
        items=tuple(shown),
        suggestions=tuple(suggestions),
        total_count=len(ordered),
        sort_field=SortField(sort_field),
        sort_direction=SortDirection(sort_direction),
        query=(query or "").strip(),
    )
