"""
도메인 모델: BoM 이관 대시보드의 핵심 데이터 구조

이 모듈은 원격 저장소에서 받은 레코드를 정규화한 결과인 ``BomItem``과
이관 상태 열거형을 정의합니다. 모든 모델은 불변(frozen) 데이터클래스로
구현되어 화면 계층이 스냅샷을 직접 수정할 수 없도록 보장합니다.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

import pandas as pd

# ============================================================
# 원격 레코드 필드명 (wire format)
# ============================================================

FIELD_DESCRIPTION = "Description_EN"
FIELD_KANBAN_FLAG = "Kanban_Flag"
FIELD_LATEST_COMPONENT_DATE = "Latest_Component_Date"
FIELD_STANDARD_PRICE = "Standard_Price"
FIELD_TOTAL_QTY = "Total_Qty"
FIELD_TRANSFER_STATUS = "Transfer_Status"
FIELD_STATUS_UPDATED_AT = "Status_UpdatedAt"
FIELD_EXPECTED_COMPLETION = "Expected_Completion"
FIELD_NOT_TO_TRANSFER_REASON = "NotToTransferReason"
FIELD_BRAND = "Brand"
FIELD_PLANNED_START = "Planned_Start"

RAW_FIELDS = (
    FIELD_DESCRIPTION,
    FIELD_KANBAN_FLAG,
    FIELD_LATEST_COMPONENT_DATE,
    FIELD_STANDARD_PRICE,
    FIELD_TOTAL_QTY,
    FIELD_TRANSFER_STATUS,
    FIELD_STATUS_UPDATED_AT,
    FIELD_EXPECTED_COMPLETION,
    FIELD_NOT_TO_TRANSFER_REASON,
    FIELD_BRAND,
    FIELD_PLANNED_START,
)

# Kanban 플래그로 인정하는 기본 값 (요약 카드 기준)
KANBAN_TOKENS = frozenset({"kanban", "y", "yes", "1", "true"})

# 필터 전용의 엄격한 기준 ("kanban"만 인정)
STRICT_KANBAN_TOKENS = frozenset({"kanban"})


class TransferStatus(str, Enum):
    """부품 이관 상태.

    값은 원격 저장소에 기록되는 문자열과 동일합니다.
    모든 상태 간 전이가 허용되며 종료 상태는 없습니다.
    """

    NOT_START = "Not Start"
    IN_PROGRESS = "In Progress"
    FINISHED = "Finished"
    TEMPORARY_USAGE = "Temporary Usage"
    NOT_TO_TRANSFER = "Not to Transfer"

    @classmethod
    def parse(cls, value: object) -> "TransferStatus":
        """임의의 원본 값을 이관 상태로 변환합니다.

        대소문자를 무시하고 과거 데이터에서 관측된 별칭도 인정합니다.
        비어있거나 알 수 없는 값은 ``NOT_START``로 처리합니다.

        Examples:
            >>> TransferStatus.parse("finished")
            <TransferStatus.FINISHED: 'Finished'>
            >>> TransferStatus.parse(None)
            <TransferStatus.NOT_START: 'Not Start'>
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NOT_START
        text = str(value).strip().casefold()
        if not text:
            return cls.NOT_START
        return _STATUS_ALIASES.get(text, cls.NOT_START)

    @property
    def label(self) -> str:
        return self.value


_STATUS_ALIASES: dict[str, TransferStatus] = {
    **{status.value.casefold(): status for status in TransferStatus},
    "not started": TransferStatus.NOT_START,
    "not_start": TransferStatus.NOT_START,
    "in_progress": TransferStatus.IN_PROGRESS,
    "completed": TransferStatus.FINISHED,
    "temporary": TransferStatus.TEMPORARY_USAGE,
    "not-transfer": TransferStatus.NOT_TO_TRANSFER,
    "no transfer": TransferStatus.NOT_TO_TRANSFER,
    "not_to_transfer": TransferStatus.NOT_TO_TRANSFER,
}

# 화면/집계에서 사용하는 고정 순서
STATUS_ORDER: tuple[TransferStatus, ...] = tuple(TransferStatus)


def is_kanban(flag: object, tokens: Iterable[str] = KANBAN_TOKENS) -> bool:
    """Kanban 플래그 문자열이 Kanban 대상인지 판정합니다."""

    if flag is None:
        return False
    text = str(flag).strip().casefold()
    return bool(text) and text in {str(t).casefold() for t in tokens}


@dataclass(frozen=True)
class BomItem:
    """
    정규화된 BoM 부품 한 건.

    ``component_material``이 컬렉션 내 고유 키이며, ``value``는 저장되지 않고
    항상 ``standard_price * total_qty``로 계산됩니다.

    Attributes:
        component_material: 부품 코드 (원격 저장소 키)
        description_en: 영문 품명
        kanban_flag: Kanban 플래그 원문
        latest_component_date: 최근 국내 구매일 (ISO 문자열 또는 빈 문자열)
        standard_price: 표준 단가 (0 이상)
        total_qty: 총 수량 (0 이상 정수)
        transfer_status: 이관 상태
        status_updated_at: 상태가 기록된 시각 (ISO 문자열 또는 빈 문자열)
        image_url: 부품 이미지 URL (없으면 None)
        expected_completion: 완료 예정일 (In Progress 상태에서 사용)
        planned_start: 착수 예정월 (Not Start 상태에서 사용)
        not_to_transfer_reason: 미이관 사유 (Not to Transfer 상태에서 사용)
        brand: 브랜드 (Not to Transfer 상태에서 사용)
    """

    component_material: str
    description_en: str = ""
    kanban_flag: str = ""
    latest_component_date: str = ""
    standard_price: float = 0.0
    total_qty: int = 0
    transfer_status: TransferStatus = TransferStatus.NOT_START
    status_updated_at: str = ""
    image_url: Optional[str] = None
    expected_completion: Optional[str] = None
    planned_start: Optional[str] = None
    not_to_transfer_reason: str = ""
    brand: str = ""

    @property
    def value(self) -> float:
        """재고 금액 (표준 단가 × 총 수량)."""
        return self.standard_price * self.total_qty

    @property
    def is_kanban(self) -> bool:
        return is_kanban(self.kanban_flag)

    def to_record(self) -> dict[str, object]:
        """계산 필드 ``value``를 포함한 평탄한 딕셔너리를 반환합니다."""

        record = asdict(self)
        record["transfer_status"] = self.transfer_status.value
        record["value"] = self.value
        return record


# ============================================================
# DataFrame 변환
# ============================================================

ITEM_COLUMNS = [
    "component_material",
    "description_en",
    "kanban_flag",
    "latest_component_date",
    "standard_price",
    "total_qty",
    "value",
    "transfer_status",
    "status_updated_at",
    "image_url",
    "expected_completion",
    "planned_start",
    "not_to_transfer_reason",
    "brand",
]


def items_to_frame(items: Sequence[BomItem]) -> pd.DataFrame:
    """
    부품 목록을 집계용 데이터프레임으로 변환합니다.

    입력 순서를 그대로 유지하며, ``transfer_status``는 문자열 값으로 저장됩니다.

    Args:
        items: 정규화된 부품 목록

    Returns:
        ITEM_COLUMNS 컬럼을 가진 데이터프레임. 입력이 비어있으면 빈 데이터프레임.
    """
    if not items:
        frame = pd.DataFrame(columns=ITEM_COLUMNS)
        frame["standard_price"] = frame["standard_price"].astype(float)
        frame["total_qty"] = frame["total_qty"].astype(int)
        frame["value"] = frame["value"].astype(float)
        return frame

    frame = pd.DataFrame([item.to_record() for item in items], columns=ITEM_COLUMNS)
    frame["standard_price"] = frame["standard_price"].astype(float)
    frame["total_qty"] = frame["total_qty"].astype(int)
    frame["value"] = frame["value"].astype(float)
    return frame
