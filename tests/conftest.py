import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def pytest_configure(config):
    """pytest 초기화 시점에 실행되어 테스트 수집 전에 환경을 준비합니다.

    테스트는 실제 Firebase에 연결하지 않도록 오프라인(메모리 저장소) 모드로 실행합니다.
    """
    os.environ.setdefault("BOM_DASHBOARD_OFFLINE", "1")
    for key in list(os.environ):
        if key.startswith("BOM_FIREBASE_"):
            del os.environ[key]


@pytest.fixture
def raw_records():
    """원격 저장소 형식의 BoM 레코드 샘플."""

    return {
        "CAP-100": {
            "Description_EN": "Ceramic capacitor 10uF",
            "Kanban_Flag": "Kanban",
            "Latest_Component_Date": "2025-03-15",
            "Standard_Price": "12.5",
            "Total_Qty": "4",
            "Transfer_Status": "Finished",
            "Status_UpdatedAt": "2025-03-20T10:00:00.000Z",
        },
        "RES-200": {
            "Description_EN": "Resistor 1k",
            "Kanban_Flag": "",
            "Standard_Price": 0.1,
            "Total_Qty": 1000,
            "Transfer_Status": "In Progress",
            "Expected_Completion": "2025-01-01",
        },
        "IC-300": {
            "Description_EN": "Microcontroller",
            "Kanban_Flag": "Y",
            "Standard_Price": "abc",
            "Total_Qty": "7",
            "Planned_Start": "2025-09-01",
        },
        "HOLD-400": {
            "Description_EN": "Legacy housing",
            "Standard_Price": 30,
            "Total_Qty": 2,
            "Transfer_Status": "Not to Transfer",
            "NotToTransferReason": "Local supplier",
            "Brand": "ACME",
        },
    }
