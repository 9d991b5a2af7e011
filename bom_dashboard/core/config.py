"""Configuration and constants for the BoM transfer dashboard.

원격 저장소 경로, Firebase 접속 정보, 동기화/집계/UI 설정을 제공합니다.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

# ============================================================
# 원격 저장소 설정
# ============================================================

# Realtime Database에서 BoM 요약이 저장된 컬렉션 경로
COLLECTION_PATH = "bom_summary"

# Storage 버킷의 부품 이미지 파일 확장자 (예: "CAP-100.png")
IMAGE_SUFFIX = ".png"

# 환경변수 접두사 (BOM_FIREBASE_DATABASE_URL 등)
ENV_PREFIX = "BOM_FIREBASE_"


@dataclass(frozen=True)
class FirebaseConfig:
    """Firebase 앱 초기화에 필요한 접속 정보.

    모듈 로드 시점에 연결을 만들지 않고, 이 객체를 어댑터 생성자에
    전달하여 명시적으로 초기화합니다. 테스트에서는 가짜 어댑터로 대체합니다.
    """

    database_url: str
    storage_bucket: Optional[str] = None
    collection_path: str = COLLECTION_PATH
    image_prefix: str = ""
    image_suffix: str = IMAGE_SUFFIX
    # 서비스 계정 JSON (None이면 Application Default Credentials 사용)
    credentials_info: Optional[dict[str, Any]] = field(default=None, repr=False)
    # 같은 프로세스에서 여러 앱을 구분하기 위한 firebase_admin 앱 이름
    app_name: str = "bom-dashboard"
    # 서명된 이미지 URL 유효 시간 (분)
    signed_url_minutes: int = 60

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any]) -> "FirebaseConfig":
        """secrets의 [firebase] 섹션으로부터 설정을 생성합니다.

        인증 정보는 다음 두 형식을 지원합니다:
        - [firebase.credentials] 테이블 (권장)
        - credentials_json 문자열

        Args:
            section: st.secrets["firebase"] 또는 동일한 구조의 매핑

        Returns:
            FirebaseConfig 인스턴스

        Raises:
            KeyError: database_url이 없을 경우
        """
        database_url = section.get("database_url")
        if not database_url:
            raise KeyError("firebase settings must include database_url")

        creds_obj = section.get("credentials", None)
        creds_json = section.get("credentials_json", None)

        credentials_info: Optional[dict[str, Any]] = None
        if creds_obj is not None:
            if isinstance(creds_obj, dict):
                credentials_info = dict(creds_obj)
            else:
                credentials_info = {k: creds_obj[k] for k in creds_obj.keys()}
        elif creds_json:
            credentials_info = json.loads(str(creds_json))

        # secrets 파일에 저장된 private_key는 개행이 이스케이프된 경우가 많음
        if credentials_info and "private_key" in credentials_info:
            credentials_info["private_key"] = (
                str(credentials_info["private_key"]).replace("\\n", "\n").strip()
            )

        return cls(
            database_url=str(database_url),
            storage_bucket=section.get("storage_bucket") or None,
            collection_path=str(section.get("collection_path") or COLLECTION_PATH),
            image_prefix=str(section.get("image_prefix") or ""),
            image_suffix=str(section.get("image_suffix") or IMAGE_SUFFIX),
            credentials_info=credentials_info,
            app_name=str(section.get("app_name") or "bom-dashboard"),
            signed_url_minutes=int(section.get("signed_url_minutes") or 60),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Optional["FirebaseConfig"]:
        """BOM_FIREBASE_* 환경변수로부터 설정을 생성합니다.

        database_url이 설정되지 않았으면 None을 반환합니다.
        """
        env = os.environ if environ is None else environ
        section: dict[str, Any] = {}
        for key in (
            "database_url",
            "storage_bucket",
            "collection_path",
            "image_prefix",
            "image_suffix",
            "credentials_json",
            "app_name",
            "signed_url_minutes",
        ):
            value = env.get(f"{ENV_PREFIX}{key.upper()}")
            if value:
                section[key] = value

        # 서비스 계정 파일 경로가 주어지면 파일 내용을 읽어서 사용
        credentials_path = env.get(f"{ENV_PREFIX}CREDENTIALS_PATH")
        if credentials_path and "credentials_json" not in section:
            with open(credentials_path, encoding="utf-8") as fh:
                section["credentials_json"] = fh.read()

        if not section.get("database_url"):
            return None
        return cls.from_mapping(section)


# ============================================================
# 동기화 설정
# ============================================================

@dataclass(frozen=True)
class SyncConfig:
    """스냅샷 정규화 및 이미지 조회 관련 설정"""

    # 이미지 조회 동시 실행 수 (None이면 부품 수만큼 동시에 실행)
    image_lookup_workers: Optional[int] = None

    # 개별 이미지 조회 대기 시간 (초, None이면 제한 없음)
    image_lookup_timeout: Optional[float] = None

    # 초기 스냅샷 대기 시간 (초)
    initial_load_timeout: float = 15.0


# ============================================================
# 집계 설정
# ============================================================

@dataclass(frozen=True)
class AnalyticsConfig:
    """요약 지표 및 탭 구성 관련 설정"""

    # Kanban 플래그로 인정하는 값 (대소문자 무시)
    kanban_tokens: frozenset[str] = frozenset({"kanban", "y", "yes", "1", "true"})

    # "Current BoM" 탭에 포함할 상태 조합 이름
    # (not_started | target_to_transfer | open_including_hold)
    current_bom_composition: str = "not_started"

    # 검색 추천어 최대 개수
    search_suggestion_limit: int = 6


# ============================================================
# UI 설정
# ============================================================

@dataclass(frozen=True)
class UIConfig:
    """UI 표시 관련 설정"""

    # 부품 테이블 기본 높이 (픽셀)
    table_height: int = 620

    # 월 선택 드롭다운에 표시할 개월 수 (작년 1월부터)
    month_selector_span: int = 24

    # 요약 카드 한 줄당 카드 수
    summary_cards_per_row: int = 4


@dataclass(frozen=True)
class DashboardConfig:
    """대시보드 전역 설정"""

    sync: SyncConfig = field(default_factory=SyncConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    ui: UIConfig = field(default_factory=UIConfig)


# ============================================================
# 전역 설정 인스턴스
# ============================================================

# 전역 설정 객체 (불변)
CONFIG = DashboardConfig()
