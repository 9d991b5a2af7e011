"""
데이터 소스 계층

원격 저장소 어댑터(Firebase, 메모리)와 이를 구독하는
실시간 BoM 컬렉션을 제공합니다.
"""

from .collection import (
    CollectionState,
    CollectionStats,
    LiveBomCollection,
    LoadStatus,
    SnapshotMailbox,
    to_iso_timestamp,
)
from .session import create_store, ensure_collection, get_collection, load_firebase_config
from .store import InMemoryRemoteStore, RemoteStore, apply_path_update, build_update_path

__all__ = [
    # 저장소
    "RemoteStore",
    "InMemoryRemoteStore",
    "apply_path_update",
    "build_update_path",
    # 컬렉션
    "LiveBomCollection",
    "CollectionState",
    "CollectionStats",
    "LoadStatus",
    "SnapshotMailbox",
    "to_iso_timestamp",
    # 세션
    "create_store",
    "get_collection",
    "ensure_collection",
    "load_firebase_config",
]
