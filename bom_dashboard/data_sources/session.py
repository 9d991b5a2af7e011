"""
세션 자원 관리

이 모듈은 Streamlit 프로세스 안에서 원격 저장소 연결과
실시간 BoM 컬렉션을 한 번만 생성하여 모든 세션이 공유하도록 합니다.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Mapping, Optional

import streamlit as st

from bom_dashboard.core.config import CONFIG, FirebaseConfig

from .collection import CollectionState, LiveBomCollection
from .store import InMemoryRemoteStore, RemoteStore

logger = logging.getLogger(__name__)

# 오프라인(메모리 저장소) 모드 전환 환경변수
OFFLINE_ENV = "BOM_DASHBOARD_OFFLINE"
# 오프라인 모드에서 읽어올 시드 JSON 파일 경로
SEED_PATH_ENV = "BOM_DASHBOARD_SEED_PATH"


def _offline_requested(environ: Mapping[str, str]) -> bool:
    return str(environ.get(OFFLINE_ENV, "")).strip().lower() in {"1", "true", "yes", "on"}


def load_firebase_config(
    secrets: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[FirebaseConfig]:
    """
    Firebase 접속 정보를 찾습니다.

    우선순위:
    1. secrets의 [firebase] 섹션 (st.secrets)
    2. BOM_FIREBASE_* 환경변수

    Returns:
        FirebaseConfig. 설정이 전혀 없으면 None.
    """
    env = os.environ if environ is None else environ

    if secrets is None:
        try:
            secrets = st.secrets
        except Exception:
            secrets = {}

    try:
        section = secrets.get("firebase") if secrets is not None else None
    except Exception as exc:
        # secrets.toml이 없으면 st.secrets 접근 시 예외가 발생함
        logger.debug(f"st.secrets unavailable: {exc}")
        section = None

    if section:
        return FirebaseConfig.from_mapping(section)
    return FirebaseConfig.from_env(env)


def load_seed_records(path: Optional[str]) -> dict[str, Any]:
    """오프라인 모드용 시드 레코드를 JSON 파일에서 읽습니다 (없으면 빈 컬렉션)."""

    if not path:
        return {}
    with open(path, encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, dict):
        raise ValueError(f"seed file must contain an object keyed by component: {path}")
    return payload


def create_store(
    config: Optional[FirebaseConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RemoteStore:
    """
    환경에 맞는 원격 저장소 어댑터를 생성합니다.

    오프라인 모드가 켜져 있거나 Firebase 설정이 없으면 메모리 저장소를 사용합니다.
    """
    env = os.environ if environ is None else environ

    if _offline_requested(env):
        logger.info("Offline mode requested; using in-memory store")
        return InMemoryRemoteStore.with_records(load_seed_records(env.get(SEED_PATH_ENV)))

    if config is None:
        config = load_firebase_config(environ=env)
    if config is None:
        logger.warning("No Firebase settings found; falling back to in-memory store")
        return InMemoryRemoteStore.with_records(load_seed_records(env.get(SEED_PATH_ENV)))

    # firebase_admin은 실제 연결이 필요할 때만 불러옴
    from .firebase import FirebaseRemoteStore

    return FirebaseRemoteStore(config)


@st.cache_resource(show_spinner=False)
def get_collection() -> LiveBomCollection:
    """프로세스 전역에서 공유되는 실시간 컬렉션을 반환합니다."""

    store = create_store()
    return LiveBomCollection(
        store,
        image_lookup_workers=CONFIG.sync.image_lookup_workers,
        image_lookup_timeout=CONFIG.sync.image_lookup_timeout,
    )


def ensure_collection(timeout: Optional[float] = None) -> tuple[LiveBomCollection, CollectionState]:
    """
    컬렉션을 가져오고 첫 스냅샷이 처리될 때까지 잠시 기다립니다.

    Returns:
        (컬렉션, 현재 상태). 대기 시간이 지나도 로딩 중이면 LOADING 상태가 반환됩니다.
    """
    collection = get_collection()
    wait = CONFIG.sync.initial_load_timeout if timeout is None else timeout
    with st.spinner("Loading BoM data..."):
        state = collection.wait_for(lambda s: not s.is_loading, timeout=wait)
    return collection, state
