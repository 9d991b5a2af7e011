"""
도메인 계층 퍼블릭 API

이 모듈은 도메인 계층의 주요 클래스와 함수를 재수출하여
일관된 퍼블릭 API를 제공합니다.
"""
from __future__ import annotations

from .exceptions import (
    DomainError,
    NormalizationError,
    SubscriptionError,
    ValidationError,
    WriteError,
)
from .filters import (
    CurrentBomComposition,
    KanbanFilter,
    build_search_suggestions,
    current_bom_items,
    filter_by_kanban,
    filter_by_query,
    filter_by_status,
    partition_by_status,
)
from .models import (
    ITEM_COLUMNS,
    KANBAN_TOKENS,
    STATUS_ORDER,
    STRICT_KANBAN_TOKENS,
    BomItem,
    TransferStatus,
    is_kanban,
    items_to_frame,
)
from .normalization import normalize_records, parse_record, records_to_frame, resolve_images
from .validation import validate_component_key, validate_iso_date, validate_status

__all__ = [
    # 예외
    "DomainError",
    "ValidationError",
    "SubscriptionError",
    "NormalizationError",
    "WriteError",
    # 모델
    "BomItem",
    "TransferStatus",
    "STATUS_ORDER",
    "ITEM_COLUMNS",
    "KANBAN_TOKENS",
    "STRICT_KANBAN_TOKENS",
    "is_kanban",
    "items_to_frame",
    # 정규화
    "normalize_records",
    "parse_record",
    "records_to_frame",
    "resolve_images",
    # 검증
    "validate_component_key",
    "validate_iso_date",
    "validate_status",
    # 필터
    "KanbanFilter",
    "CurrentBomComposition",
    "filter_by_query",
    "filter_by_kanban",
    "filter_by_status",
    "partition_by_status",
    "current_bom_items",
    "build_search_suggestions",
]
