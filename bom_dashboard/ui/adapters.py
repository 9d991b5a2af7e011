"""
도메인 예외 → UI 에러 메시지 어댑터

이 모듈은 도메인 계층에서 발생하는 예외를 잡아서
Streamlit 사용자 친화적인 에러 메시지로 변환합니다.

이를 통해 도메인 계층은 Streamlit에 의존하지 않으면서도
UI에서 적절한 에러 메시지를 표시할 수 있습니다.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

import streamlit as st

from bom_dashboard.domain.exceptions import (
    NormalizationError,
    SubscriptionError,
    ValidationError,
    WriteError,
)

logger = logging.getLogger(__name__)


@contextmanager
def handle_domain_errors() -> Generator[None, None, None]:
    """
    도메인 예외를 잡아서 Streamlit 에러 메시지로 변환하는 컨텍스트 매니저.

    Yields:
        None

    Examples:
        >>> with handle_domain_errors():
        ...     render_completed_tab(items)

    Notes:
        - ValidationError: 입력값 검증 실패 (경고)
        - WriteError: 원격 저장소 쓰기 실패
        - SubscriptionError: 실시간 구독 실패
        - NormalizationError: 원본 데이터 변환 실패
    """
    try:
        yield

    except ValidationError as e:
        st.warning(f"⚠️ Invalid input: {str(e)}")

    except WriteError as e:
        st.error(f"❌ Failed to save changes: {str(e)}")

    except SubscriptionError as e:
        st.error(f"❌ Failed to fetch data from Firebase: {str(e)}")

    except NormalizationError as e:
        st.error(f"❌ Failed to process data: {str(e)}")

    except Exception as e:
        logger.error(f"Unexpected UI error: {e}", exc_info=True)
        st.error(f"❌ Unexpected error: {type(e).__name__}: {str(e)}")
        st.exception(e)
