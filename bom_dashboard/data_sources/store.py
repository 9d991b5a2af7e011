"""Remote key-value store interface and an in-process implementation.

원격 저장소 어댑터는 세 가지 동작만 제공합니다:
- subscribe: 컬렉션 전체 스냅샷을 변경될 때마다 전달
- write_fields: 경로 → 값 매핑의 다중 경로 부분 쓰기 (호출 단위 원자성)
- resolve_image: 부품별 이미지 URL 조회 (없으면 None)
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Protocol

from bom_dashboard.core.config import COLLECTION_PATH
from bom_dashboard.domain.exceptions import SubscriptionError, WriteError

logger = logging.getLogger(__name__)

RawSnapshot = Optional[Mapping[str, Any]]
SnapshotCallback = Callable[[RawSnapshot], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class RemoteStore(Protocol):
    """Protocol implemented by every remote store adapter."""

    def subscribe(
        self, on_snapshot: SnapshotCallback, on_error: ErrorCallback
    ) -> Unsubscribe:  # pragma: no cover - interface definition
        ...

    def write_fields(self, updates: Mapping[str, Any]) -> None:  # pragma: no cover
        ...

    def resolve_image(self, component_material: str) -> Optional[str]:  # pragma: no cover
        ...


def build_update_path(collection: str, component_material: str, field_name: str) -> str:
    """Return the ``<collection>/<component>/<field>`` write path."""

    return f"{collection.strip('/')}/{component_material}/{field_name}"


def apply_path_update(tree: dict[str, Any], path: str, value: Any) -> None:
    """
    중첩 딕셔너리의 ``a/b/c`` 경로에 값을 기록합니다.

    값이 None이면 해당 키를 삭제하고, 비게 된 상위 딕셔너리도 정리합니다
    (Realtime Database의 null 쓰기와 같은 동작).
    """
    parts = [p for p in path.strip("/").split("/") if p]
    if not parts:
        tree.clear()
        if isinstance(value, Mapping):
            tree.update(copy.deepcopy(dict(value)))
        return

    parents: list[tuple[dict[str, Any], str]] = []
    node = tree
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            if value is None:
                return
            child = {}
            node[part] = child
        parents.append((node, part))
        node = child

    leaf = parts[-1]
    if value is None:
        node.pop(leaf, None)
        # 비어버린 상위 노드 제거
        for parent, key in reversed(parents):
            if parent.get(key):
                break
            parent.pop(key, None)
    else:
        node[leaf] = copy.deepcopy(value)


@dataclass
class InMemoryRemoteStore:
    """
    프로세스 내부 메모리에 데이터를 보관하는 원격 저장소 구현.

    실제 저장소와 동일하게 모든 쓰기 후 컬렉션 전체를 구독자에게 다시 전달합니다.
    테스트와 오프라인 데모 모드에서 사용합니다.

    Attributes:
        data: 루트 트리 (collection_path 아래에 부품 레코드가 저장됨)
        collection_path: 구독 대상 컬렉션 경로
        images: 부품 코드 → 이미지 URL
        fail_writes: True이면 모든 쓰기를 WriteError로 거부
        writes: 성공/실패와 관계없이 요청된 쓰기 기록 (검증용)
    """

    data: dict[str, Any] = field(default_factory=dict)
    collection_path: str = COLLECTION_PATH
    images: dict[str, str] = field(default_factory=dict)
    fail_writes: bool = False
    writes: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._lock = threading.RLock()
        self._subscribers: dict[int, tuple[SnapshotCallback, ErrorCallback]] = {}
        self._next_token = 0

    @classmethod
    def with_records(
        cls, records: Mapping[str, Any], *, collection_path: str = COLLECTION_PATH, **kwargs: Any
    ) -> "InMemoryRemoteStore":
        store = cls(collection_path=collection_path, **kwargs)
        apply_path_update(store.data, collection_path, dict(records))
        return store

    # ------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------
    def snapshot(self) -> RawSnapshot:
        """Return a deep copy of the subscribed collection (or None)."""

        with self._lock:
            node: Any = self.data
            for part in [p for p in self.collection_path.strip("/").split("/") if p]:
                if not isinstance(node, dict) or part not in node:
                    return None
                node = node[part]
            return copy.deepcopy(node) if node else None

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    # ------------------------------------------------------------
    # RemoteStore 프로토콜
    # ------------------------------------------------------------
    def subscribe(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Unsubscribe:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = (on_snapshot, on_error)
            current = self.snapshot()

        # 실제 저장소처럼 구독 직후 현재 상태를 한 번 전달
        self._deliver(on_snapshot, on_error, current)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def write_fields(self, updates: Mapping[str, Any]) -> None:
        payload = dict(updates)
        with self._lock:
            self.writes.append(payload)
            if self.fail_writes:
                raise WriteError("write rejected by in-memory store", paths=tuple(payload))
            if not payload:
                raise WriteError("empty update")
            for path, value in payload.items():
                apply_path_update(self.data, path, value)
        self.emit()

    def resolve_image(self, component_material: str) -> Optional[str]:
        return self.images.get(component_material)

    # ------------------------------------------------------------
    # 테스트/데모 보조 기능
    # ------------------------------------------------------------
    def emit(self) -> None:
        """Deliver the current collection to every subscriber."""

        with self._lock:
            subscribers = list(self._subscribers.values())
            current = self.snapshot()
        for on_snapshot, on_error in subscribers:
            self._deliver(on_snapshot, on_error, copy.deepcopy(current))

    def emit_error(self, error: Exception | str = "connection lost") -> None:
        """Simulate a transport failure on every subscription."""

        exc = error if isinstance(error, Exception) else SubscriptionError(str(error))
        with self._lock:
            subscribers = list(self._subscribers.values())
        for _, on_error in subscribers:
            on_error(exc)

    def replace_collection(self, records: Optional[Mapping[str, Any]]) -> None:
        """Overwrite the whole collection (as another operator would) and emit."""

        with self._lock:
            apply_path_update(self.data, self.collection_path, dict(records) if records else None)
        self.emit()

    @staticmethod
    def _deliver(
        on_snapshot: SnapshotCallback, on_error: ErrorCallback, current: RawSnapshot
    ) -> None:
        try:
            on_snapshot(current)
        except Exception as exc:
            logger.error(f"Snapshot callback failed: {exc}", exc_info=True)
            on_error(exc)
