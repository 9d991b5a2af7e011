"""
원본 레코드 정규화

이 모듈은 원격 저장소에서 받은 이질적인 레코드 매핑을 엄격한 타입의
``BomItem`` 목록으로 변환합니다. 개별 레코드의 잘못된 값은 기본값으로
대체되며, 한 건의 오류가 배치 전체를 중단시키지 않습니다.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .exceptions import NormalizationError
from .models import (
    FIELD_BRAND,
    FIELD_DESCRIPTION,
    FIELD_EXPECTED_COMPLETION,
    FIELD_KANBAN_FLAG,
    FIELD_LATEST_COMPONENT_DATE,
    FIELD_NOT_TO_TRANSFER_REASON,
    FIELD_PLANNED_START,
    FIELD_STANDARD_PRICE,
    FIELD_STATUS_UPDATED_AT,
    FIELD_TOTAL_QTY,
    FIELD_TRANSFER_STATUS,
    RAW_FIELDS,
    BomItem,
    TransferStatus,
)

logger = logging.getLogger(__name__)

ImageResolver = Callable[[str], Optional[str]]

# 원본 필드 → 정규화된 컬럼명
RAW_TO_COLUMN: dict[str, str] = {
    FIELD_DESCRIPTION: "description_en",
    FIELD_KANBAN_FLAG: "kanban_flag",
    FIELD_LATEST_COMPONENT_DATE: "latest_component_date",
    FIELD_STANDARD_PRICE: "standard_price",
    FIELD_TOTAL_QTY: "total_qty",
    FIELD_TRANSFER_STATUS: "transfer_status",
    FIELD_STATUS_UPDATED_AT: "status_updated_at",
    FIELD_EXPECTED_COMPLETION: "expected_completion",
    FIELD_NOT_TO_TRANSFER_REASON: "not_to_transfer_reason",
    FIELD_BRAND: "brand",
    FIELD_PLANNED_START: "planned_start",
}

TEXT_COLUMNS = (
    "description_en",
    "kanban_flag",
    "latest_component_date",
    "status_updated_at",
    "not_to_transfer_reason",
    "brand",
)
OPTIONAL_DATE_COLUMNS = ("expected_completion", "planned_start")

_NULL_TEXT = {"nan", "none", "null", "<na>", "undefined"}

# 앞부분 숫자만 인정 ("12.5 USD" → 12.5, "4 pcs" → 4, "1,234" → 1)
_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"[+-]?\d+")

# int64로 안전하게 변환되는 수량 상한
MAX_TOTAL_QTY = float(2**53)


def _clean_text(value: object) -> str:
    """Return ``value`` as text, mapping null-like inputs to ``""``."""

    if value is None or isinstance(value, (dict, list, tuple, set)):
        return ""
    if isinstance(value, float) and np.isnan(value):
        return ""
    text = str(value)
    if text.strip().lower() in _NULL_TEXT:
        return ""
    return text


def _clean_optional(value: object) -> Optional[str]:
    text = _clean_text(value).strip()
    return text or None


def _numeric_text(value: object, pattern: re.Pattern = _FLOAT_PREFIX) -> Optional[str]:
    """Prepare a raw numeric field for ``pd.to_numeric``.

    Booleans and containers are treated as missing. Text keeps only its
    leading number matched by ``pattern``, so ``"4 pcs"`` becomes ``"4"``
    and ``"1,234"`` becomes ``"1"``.
    """

    if value is None or isinstance(value, (bool, dict, list, tuple, set)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        return repr(float(value))
    match = pattern.match(str(value).strip())
    return repr(float(match.group(0))) if match else None


def _coerce_numeric(series: pd.Series, pattern: re.Pattern = _FLOAT_PREFIX) -> pd.Series:
    """숫자 컬럼을 float로 변환합니다 (실패/음수/무한대 → 0)."""

    text = series.map(lambda value: _numeric_text(value, pattern)).astype(object)
    numeric = pd.to_numeric(text, errors="coerce").astype(float)
    numeric = numeric.replace([np.inf, -np.inf], np.nan).fillna(0.0)
    return numeric.clip(lower=0.0)


def records_to_frame(raw: Optional[Mapping[str, object]]) -> pd.DataFrame:
    """
    원본 레코드 매핑을 정규화된 데이터프레임으로 변환합니다.

    정규화 규칙:
    - standard_price: 앞부분 숫자로 변환 (변환 실패/누락/음수 → 0)
    - total_qty: 앞부분 정수로 변환, 숫자 값은 소수점 이하 버림 (변환 실패/누락/음수 → 0)
    - 텍스트 필드: 누락 시 빈 문자열
    - expected_completion, planned_start: 누락 시 None
    - transfer_status: 알 수 없는 값은 Not Start

    Args:
        raw: 부품 코드 → 원본 레코드 매핑 (None이면 빈 결과)

    Returns:
        index가 부품 코드인 데이터프레임 (입력 키 순서 유지)

    Examples:
        >>> frame = records_to_frame({"CAP-100": {"Standard_Price": "12.5", "Total_Qty": "4"}})
        >>> float(frame.loc["CAP-100", "standard_price"]), int(frame.loc["CAP-100", "total_qty"])
        (12.5, 4)
    """
    if not raw:
        return pd.DataFrame(columns=list(RAW_TO_COLUMN.values()))

    # ========================================
    # 1단계: 레코드 형태 검증
    # ========================================
    # 매핑이 아닌 레코드는 빈 레코드로 취급 (배치 전체는 계속 처리)
    keys: list[str] = []
    rows: list[dict[str, object]] = []
    for key, record in raw.items():
        keys.append(str(key))
        if isinstance(record, Mapping):
            rows.append({field: record.get(field) for field in RAW_FIELDS})
        else:
            logger.warning(
                "Record %s has unexpected type %s; using defaults",
                key,
                type(record).__name__,
            )
            rows.append({field: None for field in RAW_FIELDS})

    frame = pd.DataFrame(rows, index=pd.Index(keys, name="component_material"), dtype=object)
    frame = frame.reindex(columns=list(RAW_FIELDS)).rename(columns=RAW_TO_COLUMN)

    # ========================================
    # 2단계: 숫자 필드 정규화
    # ========================================
    frame["standard_price"] = _coerce_numeric(frame["standard_price"])
    # 정수 부분만 사용, int64 범위를 넘지 않도록 상한 적용
    qty = np.trunc(_coerce_numeric(frame["total_qty"], _INT_PREFIX))
    frame["total_qty"] = qty.clip(upper=MAX_TOTAL_QTY).astype("int64")

    # ========================================
    # 3단계: 텍스트/날짜/상태 필드 정규화
    # ========================================
    for column in TEXT_COLUMNS:
        frame[column] = frame[column].map(_clean_text).astype(object)
    for column in OPTIONAL_DATE_COLUMNS:
        frame[column] = frame[column].map(_clean_optional).astype(object)
    frame["transfer_status"] = frame["transfer_status"].map(TransferStatus.parse).astype(object)

    return frame


def _row_to_item(key: str, row: Mapping[str, object], image_url: Optional[str]) -> BomItem:
    return BomItem(
        component_material=key,
        description_en=str(row["description_en"]),
        kanban_flag=str(row["kanban_flag"]),
        latest_component_date=str(row["latest_component_date"]).strip(),
        standard_price=float(row["standard_price"]),
        total_qty=int(row["total_qty"]),
        transfer_status=TransferStatus.parse(row["transfer_status"]),
        status_updated_at=str(row["status_updated_at"]).strip(),
        image_url=image_url or None,
        expected_completion=_clean_optional(row["expected_completion"]),
        planned_start=_clean_optional(row["planned_start"]),
        not_to_transfer_reason=str(row["not_to_transfer_reason"]),
        brand=str(row["brand"]),
    )


def parse_record(key: str, record: object, image_url: Optional[str] = None) -> BomItem:
    """원본 레코드 한 건을 ``BomItem``으로 변환합니다. 예외를 던지지 않습니다."""

    frame = records_to_frame({key: record})
    row = frame.iloc[0].to_dict()
    return _row_to_item(str(key), row, image_url)


def resolve_images(
    keys: Sequence[str],
    resolver: Optional[ImageResolver],
    *,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> dict[str, Optional[str]]:
    """
    부품별 이미지 URL을 동시에 조회합니다.

    각 조회는 서로 격리되어 있어, 한 건의 실패/지연이 다른 조회를 막지 않습니다.
    실패하거나 제한 시간을 넘긴 조회는 None으로 처리합니다.

    Args:
        keys: 부품 코드 목록
        resolver: 부품 코드 → 이미지 URL 함수 (None이면 조회하지 않음)
        max_workers: 동시 실행 수 (None이면 부품 수만큼)
        timeout: 전체 조회 대기 시간 (초, None이면 모든 조회가 끝날 때까지 대기)

    Returns:
        부품 코드 → 이미지 URL(또는 None) 매핑. 모든 키를 포함합니다.
    """
    results: dict[str, Optional[str]] = {key: None for key in keys}
    if resolver is None or not keys:
        return results

    workers = max(1, min(len(keys), max_workers) if max_workers else len(keys))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bom-image")
    try:
        futures = {executor.submit(resolver, key): key for key in keys}
        done, not_done = wait(futures, timeout=timeout)

        for future in done:
            key = futures[future]
            try:
                url = future.result()
            except Exception as exc:
                logger.debug(f"Image lookup failed for {key}: {exc}")
                continue
            results[key] = str(url) if url else None

        if not_done:
            logger.warning(f"{len(not_done)} image lookups timed out; treating as missing")
            for future in not_done:
                future.cancel()
    finally:
        # 시간 초과된 조회를 기다리지 않음
        executor.shutdown(wait=False)

    return results


def normalize_records(
    raw: Optional[Mapping[str, object]],
    resolve_image: Optional[ImageResolver] = None,
    *,
    max_workers: Optional[int] = None,
    image_timeout: Optional[float] = None,
) -> list[BomItem]:
    """
    원격 스냅샷 전체를 ``BomItem`` 목록으로 변환합니다.

    입력 키마다 정확히 한 건의 결과를 반환하며, 순서는 입력 키 순서를 따릅니다.
    이미지 조회는 모두 동시에 실행되고, 모든 조회가 끝난 뒤에 결과를 반환합니다.

    Args:
        raw: 부품 코드 → 원본 레코드 매핑 (None이면 빈 목록)
        resolve_image: 이미지 URL 조회 함수
        max_workers: 이미지 조회 동시 실행 수
        image_timeout: 이미지 조회 대기 시간 (초)

    Returns:
        정규화된 부품 목록

    Raises:
        NormalizationError: 스냅샷 자체가 매핑이 아니거나 변환 중 예기치 못한 오류 발생 시
    """
    if raw is None:
        return []
    if not isinstance(raw, Mapping):
        raise NormalizationError(
            f"snapshot must be a mapping of component records, got {type(raw).__name__}"
        )

    try:
        frame = records_to_frame(raw)
    except Exception as exc:
        logger.error(f"Failed to normalize snapshot: {exc}", exc_info=True)
        raise NormalizationError(f"failed to normalize snapshot: {exc}") from exc

    keys = [str(key) for key in frame.index]
    image_urls = resolve_images(
        keys, resolve_image, max_workers=max_workers, timeout=image_timeout
    )

    items = [
        _row_to_item(key, row, image_urls.get(key))
        for key, row in zip(keys, frame.to_dict(orient="records"))
    ]
    logger.debug(
        f"Normalized {len(items)} records ({sum(1 for i in items if i.image_url)} with images)"
    )
    return items

