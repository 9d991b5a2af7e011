"""
성능 모니터링 유틸리티

코드 블록 실행 시간을 측정하여 로깅하는 컨텍스트 매니저를 제공합니다.
스냅샷 정규화, 내보내기 등 시간이 걸릴 수 있는 작업에 사용합니다.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

logger = logging.getLogger(__name__)

# 로그 레벨을 올리는 기준 시간 (초)
WARN_THRESHOLD_SECONDS = 1.0
ERROR_THRESHOLD_SECONDS = 10.0


def measure_time_context(
    operation_name: str, *, log: Optional[logging.Logger] = None
) -> "PerformanceContext":
    """
    컨텍스트 매니저를 사용한 코드 블록 성능 측정.

    Args:
        operation_name: 측정할 작업의 이름
        log: 결과를 남길 로거 (기본값: 이 모듈의 로거)

    Returns:
        PerformanceContext 인스턴스

    Examples:
        >>> with measure_time_context("snapshot normalization"):
        ...     items = normalize_records(raw)
        INFO - snapshot normalization completed in 0.42s
    """
    return PerformanceContext(operation_name, log=log)


class PerformanceContext:
    """
    코드 블록의 실행 시간을 측정하는 컨텍스트 매니저.

    실행 시간이 1초 이상이면 WARNING, 10초 이상이면 ERROR 레벨로 로깅합니다.

    Attributes:
        operation_name: 측정할 작업의 이름
        elapsed: 경과 시간 (초)
    """

    def __init__(self, operation_name: str, *, log: Optional[logging.Logger] = None) -> None:
        self.operation_name = operation_name
        self.start_time: float = 0.0
        self.elapsed: float = 0.0
        self._log = log or logger

    def __enter__(self) -> "PerformanceContext":
        self.start_time = time.perf_counter()
        self._log.debug(f"Starting: {self.operation_name}")
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time

        if exc_type is not None:
            self._log.error(f"{self.operation_name} failed after {self.elapsed:.2f}s")
        elif self.elapsed >= ERROR_THRESHOLD_SECONDS:
            self._log.error(
                f"SLOW: {self.operation_name} took {self.elapsed:.2f}s "
                f"(threshold: {ERROR_THRESHOLD_SECONDS:.0f}s)"
            )
        elif self.elapsed >= WARN_THRESHOLD_SECONDS:
            self._log.warning(
                f"{self.operation_name} took {self.elapsed:.2f}s "
                f"(threshold: {WARN_THRESHOLD_SECONDS:.0f}s)"
            )
        else:
            self._log.info(f"{self.operation_name} completed in {self.elapsed:.2f}s")
