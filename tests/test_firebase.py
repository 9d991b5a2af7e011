"""
Firebase 어댑터 테스트

firebase_admin의 db/storage 모듈을 mock으로 대체하여
리스너 이벤트 누적, 다중 경로 쓰기, 이미지 조회를 검증합니다.
"""
from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from bom_dashboard.core.config import FirebaseConfig
from bom_dashboard.data_sources.firebase import FirebaseRemoteStore, SnapshotMirror
from bom_dashboard.domain.exceptions import SubscriptionError, WriteError

CONFIG = FirebaseConfig(
    database_url="https://example.firebaseio.com",
    storage_bucket="example.appspot.com",
    image_prefix="images/",
)


def _event(event_type, path, data):
    return SimpleNamespace(event_type=event_type, path=path, data=data)


# ============================================================
# SnapshotMirror
# ============================================================

def test_mirror_root_put_replaces_tree():
    mirror = SnapshotMirror()

    snapshot = mirror.apply("put", "/", {"CAP-100": {"Brand": "ACME"}})

    assert snapshot == {"CAP-100": {"Brand": "ACME"}}


def test_mirror_child_put_and_patch():
    mirror = SnapshotMirror()
    mirror.apply("put", "/", {"CAP-100": {"Brand": "ACME", "Total_Qty": 4}})

    mirror.apply("put", "/CAP-100/Brand", "OEM")
    snapshot = mirror.apply("patch", "/CAP-100", {"Transfer_Status": "Finished", "Total_Qty": None})

    assert snapshot == {"CAP-100": {"Brand": "OEM", "Transfer_Status": "Finished"}}


def test_mirror_root_put_none_empties_collection():
    mirror = SnapshotMirror()
    mirror.apply("put", "/", {"CAP-100": {"Brand": "ACME"}})

    assert mirror.apply("put", "/", None) is None


def test_mirror_rejects_unknown_event():
    with pytest.raises(SubscriptionError):
        SnapshotMirror().apply("cancel", "/", None)


# ============================================================
# 구독
# ============================================================

def test_subscribe_forwards_full_snapshots():
    with patch("bom_dashboard.data_sources.firebase.db") as mock_db:
        registration = MagicMock()
        mock_db.reference.return_value.listen.return_value = registration
        store = FirebaseRemoteStore(CONFIG, app=MagicMock())
        snapshots, errors = [], []

        unsubscribe = store.subscribe(snapshots.append, errors.append)
        listener = mock_db.reference.return_value.listen.call_args[0][0]
        listener(_event("put", "/", {"CAP-100": {"Total_Qty": 4}}))
        listener(_event("patch", "/CAP-100", {"Brand": "ACME"}))

        assert mock_db.reference.call_args[0][0] == "bom_summary"
        assert snapshots == [
            {"CAP-100": {"Total_Qty": 4}},
            {"CAP-100": {"Total_Qty": 4, "Brand": "ACME"}},
        ]
        assert errors == []

        unsubscribe()
        unsubscribe()
        registration.close.assert_called_once()


def test_subscribe_failure_is_reported_through_on_error():
    with patch("bom_dashboard.data_sources.firebase.db") as mock_db:
        mock_db.reference.return_value.listen.side_effect = RuntimeError("permission denied")
        store = FirebaseRemoteStore(CONFIG, app=MagicMock())
        errors = []

        unsubscribe = store.subscribe(lambda raw: None, errors.append)

        assert len(errors) == 1
        assert isinstance(errors[0], SubscriptionError)
        assert "Failed to fetch data from Firebase" in str(errors[0])
        unsubscribe()


# ============================================================
# 쓰기
# ============================================================

def test_write_fields_uses_single_root_update():
    with patch("bom_dashboard.data_sources.firebase.db") as mock_db:
        store = FirebaseRemoteStore(CONFIG, app=MagicMock())
        updates = {
            "bom_summary/HOLD-400/NotToTransferReason": "Cost",
            "bom_summary/HOLD-400/Brand": "OEM",
        }

        store.write_fields(updates)

        mock_db.reference.assert_called_once()
        assert mock_db.reference.call_args[0][0] == "/"
        mock_db.reference.return_value.update.assert_called_once_with(updates)


def test_write_fields_wraps_rejection():
    with patch("bom_dashboard.data_sources.firebase.db") as mock_db:
        mock_db.reference.return_value.update.side_effect = ValueError("bad path")
        store = FirebaseRemoteStore(CONFIG, app=MagicMock())

        with pytest.raises(WriteError) as excinfo:
            store.write_fields({"bom_summary/CAP-100/Brand": "ACME"})

        assert excinfo.value.paths == ("bom_summary/CAP-100/Brand",)


def test_write_fields_rejects_empty_update():
    with patch("bom_dashboard.data_sources.firebase.db"):
        store = FirebaseRemoteStore(CONFIG, app=MagicMock())

        with pytest.raises(WriteError):
            store.write_fields({})


# ============================================================
# 이미지 조회
# ============================================================

def test_resolve_image_returns_signed_url():
    with patch("bom_dashboard.data_sources.firebase.storage") as mock_storage:
        blob = mock_storage.bucket.return_value.blob.return_value
        blob.exists.return_value = True
        blob.generate_signed_url.return_value = "https://signed/cap.png"
        store = FirebaseRemoteStore(CONFIG, app=MagicMock())

        assert store.resolve_image("CAP-100") == "https://signed/cap.png"
        mock_storage.bucket.return_value.blob.assert_called_once_with("images/CAP-100.png")
        assert blob.generate_signed_url.call_args.kwargs["version"] == "v4"


def test_resolve_image_missing_blob_is_none():
    with patch("bom_dashboard.data_sources.firebase.storage") as mock_storage:
        mock_storage.bucket.return_value.blob.return_value.exists.return_value = False
        store = FirebaseRemoteStore(CONFIG, app=MagicMock())

        assert store.resolve_image("RES-200") is None


def test_resolve_image_errors_are_none():
    with patch("bom_dashboard.data_sources.firebase.storage") as mock_storage:
        mock_storage.bucket.side_effect = RuntimeError("no bucket")
        store = FirebaseRemoteStore(CONFIG, app=MagicMock())

        assert store.resolve_image("RES-200") is None
