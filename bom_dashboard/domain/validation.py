"""
쓰기 입력값 검증 로직

이 모듈은 원격 부분 쓰기 전에 부품 코드, 이관 상태, 날짜 입력의
유효성을 검증합니다. Streamlit/Firebase 의존성 없이 순수한 도메인 로직으로 동작합니다.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

from .exceptions import ValidationError
from .models import TransferStatus

logger = logging.getLogger(__name__)

# Realtime Database 키에 사용할 수 없는 문자
FORBIDDEN_KEY_CHARS = frozenset(".$#[]/")

DateInput = Union[str, date, datetime, pd.Timestamp, None]


def validate_component_key(component_material: object) -> str:
    """
    부품 코드가 원격 경로의 키로 사용 가능한지 검증합니다.

    Args:
        component_material: 부품 코드

    Returns:
        앞뒤 공백이 제거된 부품 코드

    Raises:
        ValidationError: 비어있거나 금지 문자(. $ # [ ] /)를 포함한 경우
    """
    key = "" if component_material is None else str(component_material).strip()
    if not key:
        raise ValidationError("부품 코드가 비어 있습니다.")

    bad_chars = sorted({ch for ch in key if ch in FORBIDDEN_KEY_CHARS or ord(ch) < 32})
    if bad_chars:
        logger.error(f"Invalid component key {key!r}: {bad_chars}")
        raise ValidationError(
            f"부품 코드에 사용할 수 없는 문자가 있습니다: {key!r}"
        )
    return key


def validate_status(status: object) -> TransferStatus:
    """
    쓰기용 이관 상태를 엄격하게 검증합니다.

    정규화(parse)와 달리 알 수 없는 값을 Not Start로 바꾸지 않고 거부합니다.

    Raises:
        ValidationError: 다섯 가지 상태 중 하나가 아닌 경우
    """
    if isinstance(status, TransferStatus):
        return status
    try:
        return TransferStatus(str(status))
    except ValueError:
        raise ValidationError(f"알 수 없는 이관 상태입니다: {status!r}") from None


def validate_iso_date(value: DateInput) -> Optional[str]:
    """
    날짜 입력을 ISO 문자열로 정리합니다. 빈 값은 None(필드 삭제)을 의미합니다.

    - date/datetime/Timestamp: ISO 형식으로 변환
    - 문자열: 해석 가능한지 확인한 뒤 앞뒤 공백만 제거하여 그대로 기록

    Raises:
        ValidationError: 날짜로 해석할 수 없는 문자열인 경우
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, (datetime, date)):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return None
    parsed = pd.to_datetime(text, errors="coerce", utc=True)
    if pd.isna(parsed):
        raise ValidationError(f"날짜 형식이 올바르지 않습니다: {text!r}")
    return text
