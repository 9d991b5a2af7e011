"""
BoM Transfer Dashboard 패키지

BoM(Bill of Materials) 부품별 이관 상태를 실시간 키-값 저장소와 동기화하고,
요약 지표와 월별 예측 뷰를 계산하는 대시보드입니다.
주요 구성:
- domain: 원본 레코드 정규화, 도메인 모델, 검색/상태 필터
- data_sources: 원격 저장소 어댑터와 실시간 컬렉션
- analytics: 집계, 정렬, 월별 버킷, 감소 추세, 내보내기
- ui: Streamlit 화면 구성 요소
"""

from __future__ import annotations

__version__ = "1.0.0"
