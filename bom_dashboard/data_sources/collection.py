"""
실시간 BoM 컬렉션

원격 저장소 구독을 하나 유지하면서 최신 스냅샷을 정규화하여 보관하고,
화면 계층이 사용할 네 가지 갱신 동작(이관 상태, 완료 예정일, 착수 예정월,
미이관 사유/브랜드)을 제공합니다.

동시성 모델:
- 저장소 리스너는 스냅샷/오류 메시지를 깊이 1의 우편함에 넣기만 합니다.
- 단일 작업 스레드가 우편함을 비우며 정규화와 상태 게시를 직렬화합니다.
- 정규화 중 새 메시지가 도착하면 진행 중인 결과는 버립니다 (마지막 스냅샷 우선).
- 갱신 동작은 원격 쓰기만 수행하며, 화면은 다음 스냅샷이 도착할 때 반영됩니다.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence

from bom_dashboard.common.performance import measure_time_context
from bom_dashboard.core.config import COLLECTION_PATH, CONFIG
from bom_dashboard.domain.exceptions import (
    NormalizationError,
    SubscriptionError,
    ValidationError,
    WriteError,
)
from bom_dashboard.domain.models import (
    FIELD_BRAND,
    FIELD_EXPECTED_COMPLETION,
    FIELD_NOT_TO_TRANSFER_REASON,
    FIELD_PLANNED_START,
    FIELD_STATUS_UPDATED_AT,
    FIELD_TRANSFER_STATUS,
    BomItem,
    TransferStatus,
)
from bom_dashboard.domain.normalization import normalize_records
from bom_dashboard.domain.validation import (
    DateInput,
    validate_component_key,
    validate_iso_date,
    validate_status,
)

from .store import RawSnapshot, RemoteStore, build_update_path

logger = logging.getLogger(__name__)

Normalizer = Callable[..., list[BomItem]]
Clock = Callable[[], datetime]
StateListener = Callable[["CollectionState"], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_timestamp(moment: datetime) -> str:
    """Format ``moment`` like ``Date.toISOString`` (UTC, milliseconds, ``Z``)."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ============================================================
# 컬렉션 상태
# ============================================================

class LoadStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class CollectionState:
    """
    화면 계층에 노출되는 컬렉션 상태 (Loading | Ready(items) | Error(reason)).

    Attributes:
        status: 현재 상태
        items: 정규화된 부품 목록 (READY일 때만 채워짐)
        error: 에러 메시지 (ERROR일 때만 채워짐)
        updated_at: 상태가 바뀐 시각 (UTC)
        version: 게시된 상태의 일련번호
    """

    status: LoadStatus
    items: tuple[BomItem, ...] = ()
    error: Optional[str] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    @classmethod
    def loading(cls) -> "CollectionState":
        return cls(status=LoadStatus.LOADING)

    @classmethod
    def ready(cls, items: Sequence[BomItem], *, updated_at: Optional[datetime] = None, version: int = 0) -> "CollectionState":
        return cls(status=LoadStatus.READY, items=tuple(items), updated_at=updated_at, version=version)

    @classmethod
    def failed(cls, reason: str, *, updated_at: Optional[datetime] = None, version: int = 0) -> "CollectionState":
        return cls(status=LoadStatus.ERROR, error=reason, updated_at=updated_at, version=version)

    @property
    def is_loading(self) -> bool:
        return self.status is LoadStatus.LOADING

    @property
    def is_ready(self) -> bool:
        return self.status is LoadStatus.READY

    @property
    def is_error(self) -> bool:
        return self.status is LoadStatus.ERROR


# ============================================================
# 깊이 1 우편함
# ============================================================

@dataclass(frozen=True)
class _SnapshotMessage:
    raw: RawSnapshot


@dataclass(frozen=True)
class _ErrorMessage:
    error: Exception


_Message = Any  # _SnapshotMessage | _ErrorMessage


class SnapshotMailbox:
    """
    최신 메시지 하나만 보관하는 우편함.

    put()은 대기 중인 메시지를 덮어쓰고, get()은 메시지가 올 때까지 기다립니다.
    close() 이후 get()은 None을 반환합니다.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending: Optional[_Message] = None
        self._has_pending = False
        self._closed = False
        self.dropped = 0

    def put(self, message: _Message) -> None:
        with self._cond:
            if self._closed:
                return
            if self._has_pending:
                self.dropped += 1
            self._pending = message
            self._has_pending = True
            self._cond.notify()

    def get(self, timeout: Optional[float] = None) -> Optional[_Message]:
        with self._cond:
            if not self._has_pending and not self._closed:
                self._cond.wait(timeout)
            if not self._has_pending:
                return None
            message = self._pending
            self._pending = None
            self._has_pending = False
            return message

    def has_pending(self) -> bool:
        with self._cond:
            return self._has_pending

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._pending = None
            self._has_pending = False
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed


# ============================================================
# 실시간 컬렉션
# ============================================================

class LiveBomCollection:
    """
    원격 저장소와 동기화되는 BoM 부품 컬렉션.

    생성 시 정확히 하나의 구독을 열고, close() 또는 컨텍스트 종료 시 해제합니다.
    모든 갱신 메서드는 예외를 던지지 않고 성공 여부를 bool로 반환합니다.

    Args:
        store: 원격 저장소 어댑터
        collection_path: 쓰기 경로의 컬렉션 이름 (기본값: "bom_summary")
        normalizer: 원본 스냅샷 → 부품 목록 변환 함수
        clock: 상태 갱신 시각을 만드는 함수 (테스트에서 고정)
        threaded: False이면 스냅샷을 전달한 스레드에서 바로 처리 (결정적 테스트용)
        image_lookup_workers: 이미지 조회 동시 실행 수
        image_lookup_timeout: 이미지 조회 대기 시간 (초)

    Examples:
        >>> with LiveBomCollection(store) as collection:
        ...     state = collection.wait_for(lambda s: not s.is_loading, timeout=10)
        ...     collection.update_status("X123", TransferStatus.FINISHED)
    """

    def __init__(
        self,
        store: RemoteStore,
        *,
        collection_path: Optional[str] = None,
        normalizer: Normalizer = normalize_records,
        clock: Clock = utc_now,
        threaded: bool = True,
        image_lookup_workers: Optional[int] = CONFIG.sync.image_lookup_workers,
        image_lookup_timeout: Optional[float] = CONFIG.sync.image_lookup_timeout,
    ) -> None:
        self._store = store
        self._collection_path = (
            collection_path or getattr(store, "collection_path", None) or COLLECTION_PATH
        )
        self._normalizer = normalizer
        self._clock = clock
        self._threaded = threaded
        self._image_lookup_workers = image_lookup_workers
        self._image_lookup_timeout = image_lookup_timeout

        self._state = CollectionState.loading()
        self._state_cond = threading.Condition()
        self._listeners: list[StateListener] = []
        self._process_lock = threading.Lock()
        self._mailbox = SnapshotMailbox()
        self._worker: Optional[threading.Thread] = None

        if threaded:
            self._worker = threading.Thread(
                target=self._run, name="bom-collection-worker", daemon=True
            )
            self._worker.start()

        # 구독 직후 현재 스냅샷이 동기적으로 전달될 수 있으므로 먼저 초기화
        self._released = False
        self._unsubscribe: Callable[[], None] = lambda: None

        logger.info(f"Opening subscription to '{self._collection_path}'")
        self._unsubscribe = store.subscribe(self._on_snapshot, self._on_error)

    # ------------------------------------------------------------
    # 수명 주기
    # ------------------------------------------------------------
    def close(self) -> None:
        """구독을 해제하고 작업 스레드를 정지합니다. 여러 번 호출해도 안전합니다."""

        if self._released:
            return
        self._released = True
        try:
            self._unsubscribe()
        except Exception as exc:
            logger.warning(f"Unsubscribe failed: {exc}", exc_info=True)
        self._mailbox.close()
        if self._worker is not None and self._worker is not threading.current_thread():
            self._worker.join(timeout=5)
        logger.info(f"Closed subscription to '{self._collection_path}'")

    @property
    def closed(self) -> bool:
        return self._released

    def __enter__(self) -> "LiveBomCollection":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # ------------------------------------------------------------
    # 조회 API
    # ------------------------------------------------------------
    @property
    def state(self) -> CollectionState:
        with self._state_cond:
            return self._state

    @property
    def items(self) -> tuple[BomItem, ...]:
        return self.state.items

    @property
    def collection_path(self) -> str:
        return self._collection_path

    def get(self, component_material: str) -> Optional[BomItem]:
        for item in self.items:
            if item.component_material == component_material:
                return item
        return None

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """상태가 게시될 때마다 호출될 함수를 등록하고, 해제 함수를 반환합니다."""

        with self._state_cond:
            self._listeners.append(listener)

        def remove() -> None:
            with self._state_cond:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def wait_for(
        self,
        predicate: Callable[[CollectionState], bool],
        timeout: Optional[float] = None,
    ) -> CollectionState:
        """조건을 만족하는 상태가 게시될 때까지 기다린 뒤 현재 상태를 반환합니다."""

        with self._state_cond:
            self._state_cond.wait_for(lambda: predicate(self._state), timeout=timeout)
            return self._state

    # ------------------------------------------------------------
    # 구독 콜백 → 우편함
    # ------------------------------------------------------------
    def _on_snapshot(self, raw: RawSnapshot) -> None:
        self._dispatch(_SnapshotMessage(raw))

    def _on_error(self, error: Exception) -> None:
        logger.error(f"Subscription error: {error}")
        self._dispatch(_ErrorMessage(error))

    def _dispatch(self, message: _Message) -> None:
        if self.closed:
            return
        if self._threaded:
            self._mailbox.put(message)
            return
        with self._process_lock:
            self._process(message)

    def _run(self) -> None:
        while True:
            message = self._mailbox.get()
            if message is None:
                if self._mailbox.closed:
                    break
                continue
            try:
                self._process(message)
            except Exception as exc:  # pragma: no cover - _process handles domain errors
                logger.error(f"Unexpected collection worker error: {exc}", exc_info=True)
                self._publish(CollectionState.failed(f"Failed to process data: {exc}"))

    def _process(self, message: _Message) -> None:
        if isinstance(message, _ErrorMessage):
            self._publish(
                CollectionState.failed(self._describe_error(message.error))
            )
            return

        try:
            with measure_time_context("snapshot normalization", log=logger):
                items = self._normalizer(
                    message.raw,
                    self._store.resolve_image,
                    max_workers=self._image_lookup_workers,
                    image_timeout=self._image_lookup_timeout,
                )
        except Exception as exc:
            logger.error(f"Error processing data: {exc}", exc_info=True)
            self._publish(CollectionState.failed("Failed to process data"))
            return

        # 정규화 중 더 새로운 메시지가 도착했다면 이 결과는 게시하지 않음
        if self._threaded and self._mailbox.has_pending():
            logger.debug("Discarding superseded snapshot")
            return
        self._publish(CollectionState.ready(items))

    @staticmethod
    def _describe_error(error: Exception) -> str:
        if isinstance(error, (SubscriptionError, NormalizationError)):
            return str(error) or "Failed to fetch data from Firebase"
        return f"Failed to fetch data from Firebase: {error}"

    def _publish(self, state: CollectionState) -> None:
        with self._state_cond:
            stamped = CollectionState(
                status=state.status,
                items=state.items,
                error=state.error,
                updated_at=self._clock(),
                version=self._state.version + 1,
            )
            self._state = stamped
            listeners = list(self._listeners)
            self._state_cond.notify_all()

        if stamped.is_ready:
            logger.info(f"Collection ready: {len(stamped.items)} items (v{stamped.version})")
        for listener in listeners:
            try:
                listener(stamped)
            except Exception as exc:
                logger.error(f"State listener failed: {exc}", exc_info=True)

    # ------------------------------------------------------------
    # 갱신 API
    # ------------------------------------------------------------
    def _write(self, action: str, component_material: object, fields: Mapping[str, Any]) -> bool:
        try:
            key = validate_component_key(component_material)
            updates = {
                build_update_path(self._collection_path, key, name): value
                for name, value in fields.items()
            }
            self._store.write_fields(updates)
        except ValidationError as exc:
            logger.warning(f"Rejected {action} for {component_material!r}: {exc}")
            return False
        except WriteError as exc:
            logger.error(f"Error updating {action} for {component_material!r}: {exc}")
            return False
        except Exception as exc:
            logger.error(f"Error updating {action} for {component_material!r}: {exc}", exc_info=True)
            return False

        logger.info(f"Updated {action} for {key}")
        return True

    def update_status(self, component_material: str, status: TransferStatus | str) -> bool:
        """
        이관 상태와 상태 변경 시각을 한 번의 쓰기로 기록합니다.

        Returns:
            쓰기 성공 여부. 실패해도 메모리의 스냅샷은 바뀌지 않습니다.
        """
        try:
            checked = validate_status(status)
        except ValidationError as exc:
            logger.warning(f"Rejected status update for {component_material!r}: {exc}")
            return False
        return self._write(
            "status",
            component_material,
            {
                FIELD_TRANSFER_STATUS: checked.value,
                FIELD_STATUS_UPDATED_AT: to_iso_timestamp(self._clock()),
            },
        )

    def update_expected_completion(self, component_material: str, date_iso: DateInput) -> bool:
        """완료 예정일을 기록합니다. None 또는 빈 문자열은 값을 지웁니다."""

        try:
            value = validate_iso_date(date_iso)
        except ValidationError as exc:
            logger.warning(f"Rejected expected completion for {component_material!r}: {exc}")
            return False
        return self._write("expected completion", component_material, {FIELD_EXPECTED_COMPLETION: value})

    def update_planned_start(self, component_material: str, date_iso: DateInput) -> bool:
        """착수 예정월을 기록합니다. None 또는 빈 문자열은 값을 지웁니다."""

        try:
            value = validate_iso_date(date_iso)
        except ValidationError as exc:
            logger.warning(f"Rejected planned start for {component_material!r}: {exc}")
            return False
        return self._write("planned start", component_material, {FIELD_PLANNED_START: value})

    def update_not_to_transfer_details(
        self, component_material: str, reason: Optional[str], brand: Optional[str]
    ) -> bool:
        """미이관 사유와 브랜드를 항상 함께, 한 번의 쓰기로 기록합니다."""

        return self._write(
            "not-to-transfer details",
            component_material,
            {
                FIELD_NOT_TO_TRANSFER_REASON: (reason or "").strip(),
                FIELD_BRAND: (brand or "").strip(),
            },
        )


@dataclass
class CollectionStats:
    """Small summary of the collection used in the sidebar footer."""

    status: str
    item_count: int
    version: int
    updated_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_state(cls, state: CollectionState) -> "CollectionStats":
        return cls(
            status=state.status.value,
            item_count=len(state.items),
            version=state.version,
            updated_at=to_iso_timestamp(state.updated_at) if state.updated_at else None,
        )
