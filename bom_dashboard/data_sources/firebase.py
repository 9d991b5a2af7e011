"""
Firebase 원격 저장소 어댑터

이 모듈은 Firebase Realtime Database와 Cloud Storage를 통해
BoM 요약 컬렉션을 구독하고, 부분 필드 쓰기와 부품 이미지 조회를 수행합니다.

Realtime Database 리스너는 변경분(put/patch 이벤트)만 전달하므로,
어댑터가 로컬 미러에 변경분을 적용한 뒤 컬렉션 전체를 콜백에 넘깁니다.
"""

from __future__ import annotations

import copy
import logging
import threading
from datetime import timedelta
from typing import Any, Mapping, Optional

import firebase_admin
from firebase_admin import credentials, db, storage
from firebase_admin.exceptions import FirebaseError

from bom_dashboard.core.config import FirebaseConfig
from bom_dashboard.domain.exceptions import SubscriptionError, WriteError

from .store import ErrorCallback, SnapshotCallback, Unsubscribe, apply_path_update

logger = logging.getLogger(__name__)


def _get_or_create_app(config: FirebaseConfig) -> firebase_admin.App:
    """설정 이름으로 firebase_admin 앱을 찾고, 없으면 새로 초기화합니다."""

    try:
        return firebase_admin.get_app(config.app_name)
    except ValueError:
        pass

    if config.credentials_info:
        credential = credentials.Certificate(dict(config.credentials_info))
    else:
        credential = credentials.ApplicationDefault()

    options: dict[str, Any] = {"databaseURL": config.database_url}
    if config.storage_bucket:
        options["storageBucket"] = config.storage_bucket

    logger.info(f"Initializing Firebase app '{config.app_name}' for {config.database_url}")
    return firebase_admin.initialize_app(credential, options, name=config.app_name)


class SnapshotMirror:
    """
    리스너 이벤트를 누적하여 컬렉션 전체 상태를 유지하는 로컬 미러.

    - put: 이벤트 경로의 값을 통째로 교체 (None이면 삭제)
    - patch: 이벤트 경로 아래 자식 키들을 병합
    """

    def __init__(self) -> None:
        self._tree: dict[str, Any] = {}
        self._lock = threading.Lock()

    def apply(self, event_type: str, path: str, data: Any) -> Optional[dict[str, Any]]:
        """이벤트를 적용하고 컬렉션 전체의 복사본을 반환합니다 (비어있으면 None)."""

        with self._lock:
            if event_type == "put":
                if path.strip("/") == "":
                    self._tree = copy.deepcopy(data) if isinstance(data, dict) else {}
                else:
                    apply_path_update(self._tree, path, data)
            elif event_type == "patch":
                base = path.strip("/")
                for key, value in (data or {}).items():
                    child = f"{base}/{key}" if base else str(key)
                    apply_path_update(self._tree, child, value)
            else:
                raise SubscriptionError(f"unsupported listener event: {event_type}")

            return copy.deepcopy(self._tree) if self._tree else None


class FirebaseRemoteStore:
    """
    Firebase Realtime Database + Cloud Storage 기반 원격 저장소.

    Args:
        config: 접속 정보 (데이터베이스 URL, 버킷, 인증 정보)
        app: 이미 초기화된 firebase_admin 앱 (테스트에서 주입)

    Examples:
        >>> store = FirebaseRemoteStore(FirebaseConfig(database_url="https://x.firebaseio.com"))
        >>> unsubscribe = store.subscribe(print, print)
        >>> store.write_fields({"bom_summary/CAP-100/Brand": "ACME"})
        >>> unsubscribe()
    """

    def __init__(self, config: FirebaseConfig, *, app: Optional[firebase_admin.App] = None) -> None:
        self.config = config
        self._app = app if app is not None else _get_or_create_app(config)

    @property
    def collection_path(self) -> str:
        return self.config.collection_path

    def subscribe(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Unsubscribe:
        """
        컬렉션 리스너를 등록합니다.

        연결 실패를 포함한 모든 오류는 on_error로 전달되며,
        이 메서드는 호출자에게 예외를 던지지 않습니다.

        Returns:
            리스너를 해제하는 함수 (여러 번 호출해도 안전)
        """
        mirror = SnapshotMirror()

        def _listener(event: Any) -> None:
            try:
                snapshot = mirror.apply(event.event_type, event.path or "/", event.data)
                on_snapshot(snapshot)
            except Exception as exc:
                logger.error(f"Failed to handle listener event: {exc}", exc_info=True)
                on_error(exc if isinstance(exc, SubscriptionError) else SubscriptionError(str(exc)))

        try:
            ref = db.reference(self.collection_path, app=self._app)
            registration = ref.listen(_listener)
        except Exception as exc:
            logger.error(f"Firebase subscription failed: {exc}", exc_info=True)
            on_error(SubscriptionError(f"Failed to fetch data from Firebase: {exc}"))
            return lambda: None

        closed = threading.Event()

        def unsubscribe() -> None:
            if closed.is_set():
                return
            closed.set()
            try:
                registration.close()
            except Exception as exc:  # pragma: no cover - best effort cleanup
                logger.warning(f"Failed to close Firebase listener: {exc}")

        logger.info(f"Subscribed to '{self.collection_path}'")
        return unsubscribe

    def write_fields(self, updates: Mapping[str, Any]) -> None:
        """
        다중 경로 부분 쓰기를 한 번의 요청으로 수행합니다.

        Raises:
            WriteError: 저장소가 쓰기를 거부했거나 통신에 실패한 경우
        """
        payload = dict(updates)
        if not payload:
            raise WriteError("empty update")
        try:
            db.reference("/", app=self._app).update(payload)
        except (FirebaseError, ValueError) as exc:
            raise WriteError(f"Firebase update failed: {exc}", paths=tuple(payload)) from exc
        logger.debug(f"Wrote {len(payload)} fields: {sorted(payload)}")

    def resolve_image(self, component_material: str) -> Optional[str]:
        """
        Storage 버킷에서 부품 이미지의 서명된 URL을 조회합니다.

        이미지가 없는 경우가 흔하므로, 없거나 조회에 실패하면 None을 반환합니다.
        """
        blob_name = f"{self.config.image_prefix}{component_material}{self.config.image_suffix}"
        try:
            bucket = storage.bucket(app=self._app)
            blob = bucket.blob(blob_name)
            if not blob.exists():
                return None
            return blob.generate_signed_url(
                expiration=timedelta(minutes=self.config.signed_url_minutes),
                version="v4",
            )
        except Exception as exc:
            logger.debug(f"Image not found for component: {component_material} ({exc})")
            return None
