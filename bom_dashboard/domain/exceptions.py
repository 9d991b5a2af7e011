"""
도메인 계층 예외 정의

이 모듈은 BoM 대시보드 도메인/데이터 계층에서 발생할 수 있는
모든 예외를 정의합니다. 실시간 컬렉션은 이 예외들을 상태값이나
bool 결과로 변환하고, UI 계층은 사용자 친화적인 메시지로 표시합니다.
"""

from __future__ import annotations


class DomainError(Exception):
    """
    도메인 계층의 기본 예외 클래스.

    모든 도메인 예외는 이 클래스를 상속합니다.
    """

    pass


class ValidationError(DomainError):
    """
    입력값 검증 실패 시 발생하는 예외.

    예: 빈 부품 코드, 알 수 없는 이관 상태, 해석할 수 없는 날짜 등
    """

    pass


class SubscriptionError(DomainError):
    """
    원격 실시간 피드 연결/읽기 실패 시 발생하는 예외.

    화면에는 지속적인 에러 상태로 표시되며, 오래된 데이터는 렌더링하지 않습니다.
    """

    pass


class NormalizationError(DomainError):
    """
    원본 스냅샷을 도메인 모델로 변환하지 못했을 때 발생하는 예외.

    개별 레코드의 잘못된 값은 기본값으로 대체되므로,
    이 예외는 배치 전체를 처리할 수 없는 경우에만 사용합니다.
    """

    pass


class WriteError(DomainError):
    """
    원격 부분 쓰기가 거부되었을 때 발생하는 예외.

    컬렉션의 갱신 메서드는 이 예외를 False 반환값으로 변환합니다.
    """

    def __init__(self, message: str, *, paths: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.paths = paths
