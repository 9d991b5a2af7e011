"""
부품 목록 필터링 함수

검색어, Kanban 여부, 이관 상태로 부품 목록을 거르는 순수 함수들입니다.
모든 함수는 입력을 변경하지 않고 새 리스트를 반환하며, 입력 순서를 유지합니다.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Sequence

from .models import (
    KANBAN_TOKENS,
    STATUS_ORDER,
    BomItem,
    TransferStatus,
    is_kanban,
)


class KanbanFilter(str, Enum):
    ALL = "all"
    KANBAN = "kanban"
    NON_KANBAN = "non-kanban"


class CurrentBomComposition(Enum):
    """
    "Current BoM"에 포함할 이관 상태 조합.

    대시보드 버전마다 정의가 달랐기 때문에 하나로 고정하지 않고
    이름 있는 조합으로 선택하도록 합니다.

    - NOT_STARTED: Not Start만 (최신 대시보드 기준)
    - TARGET_TO_TRANSFER: Not Start + In Progress (이관 대상)
    - OPEN_INCLUDING_HOLD: Not Start + In Progress + Not to Transfer
    """

    NOT_STARTED = "not_started"
    TARGET_TO_TRANSFER = "target_to_transfer"
    OPEN_INCLUDING_HOLD = "open_including_hold"

    @property
    def statuses(self) -> tuple[TransferStatus, ...]:
        return _COMPOSITIONS[self]

    @property
    def remaining_label(self) -> str:
        """보고서의 남은 부품 항목 이름."""
        return _REMAINING_LABELS[self]

    @classmethod
    def from_name(cls, name: object) -> "CurrentBomComposition":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise ValueError(f"unknown current BoM composition: {name!r}") from None


_COMPOSITIONS: dict[CurrentBomComposition, tuple[TransferStatus, ...]] = {
    CurrentBomComposition.NOT_STARTED: (TransferStatus.NOT_START,),
    CurrentBomComposition.TARGET_TO_TRANSFER: (
        TransferStatus.NOT_START,
        TransferStatus.IN_PROGRESS,
    ),
    CurrentBomComposition.OPEN_INCLUDING_HOLD: (
        TransferStatus.NOT_START,
        TransferStatus.IN_PROGRESS,
        TransferStatus.NOT_TO_TRANSFER,
    ),
}

_REMAINING_LABELS: dict[CurrentBomComposition, str] = {
    CurrentBomComposition.NOT_STARTED: "Remaining (Not Start only)",
    CurrentBomComposition.TARGET_TO_TRANSFER: "Remaining (excluding Not to Transfer)",
    CurrentBomComposition.OPEN_INCLUDING_HOLD: "Remaining (including Not to Transfer)",
}


def filter_by_query(items: Sequence[BomItem], query: Optional[str]) -> list[BomItem]:
    """
    부품 코드 또는 영문 품명에 검색어가 포함된 부품만 반환합니다.

    대소문자를 구분하지 않으며, 공백만 있는 검색어는 전체를 반환합니다.

    Examples:
        >>> items = [BomItem("CAP-100"), BomItem("RES-200")]
        >>> [i.component_material for i in filter_by_query(items, "cap")]
        ['CAP-100']
    """
    q = (query or "").strip().casefold()
    if not q:
        return list(items)
    return [
        item
        for item in items
        if q in item.component_material.casefold()
        or q in (item.description_en or "").casefold()
    ]


def filter_by_kanban(
    items: Sequence[BomItem],
    mode: KanbanFilter | str = KanbanFilter.ALL,
    *,
    tokens: Iterable[str] = KANBAN_TOKENS,
) -> list[BomItem]:
    """Kanban 여부로 부품을 거릅니다."""

    mode = KanbanFilter(mode)
    if mode is KanbanFilter.ALL:
        return list(items)
    token_set = frozenset(tokens)
    wanted = mode is KanbanFilter.KANBAN
    return [item for item in items if is_kanban(item.kanban_flag, token_set) == wanted]


def filter_by_status(
    items: Sequence[BomItem], statuses: Iterable[TransferStatus | str]
) -> list[BomItem]:
    """지정한 이관 상태에 속한 부품만 반환합니다."""

    wanted = {TransferStatus.parse(s) for s in statuses}
    return [item for item in items if item.transfer_status in wanted]


def partition_by_status(items: Sequence[BomItem]) -> dict[TransferStatus, list[BomItem]]:
    """
    부품을 다섯 가지 이관 상태 버킷으로 나눕니다.

    모든 부품은 정확히 하나의 버킷에 들어가며, 빈 버킷도 항상 포함됩니다.
    버킷 순서는 STATUS_ORDER를 따릅니다.
    """
    buckets: dict[TransferStatus, list[BomItem]] = {status: [] for status in STATUS_ORDER}
    for item in items:
        buckets[item.transfer_status].append(item)
    return buckets


def current_bom_items(
    items: Sequence[BomItem],
    composition: CurrentBomComposition | str = CurrentBomComposition.NOT_STARTED,
) -> list[BomItem]:
    """선택한 조합 기준의 "Current BoM" 부품 목록을 반환합니다."""

    return filter_by_status(items, CurrentBomComposition.from_name(composition).statuses)


def build_search_suggestions(
    items: Sequence[BomItem], query: Optional[str], limit: int = 6
) -> list[str]:
    """
    검색창 자동완성 후보를 만듭니다.

    부품 코드와 품명 중 검색어를 포함하는 값을 중복 없이, 입력 순서대로
    최대 ``limit``개 반환합니다. 검색어가 비어있으면 빈 리스트입니다.
    """
    q = (query or "").strip().casefold()
    if not q or limit <= 0:
        return []

    suggestions: list[str] = []
    seen: set[str] = set()
    for item in items:
        for candidate in (item.component_material, item.description_en):
            if not candidate or candidate in seen:
                continue
            seen.add(candidate)
            if q in candidate.casefold():
                suggestions.append(candidate)
                if len(suggestions) >= limit:
                    return suggestions
    return suggestions
