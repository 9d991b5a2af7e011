"""
실시간 컬렉션 테스트

메모리 저장소를 사용해 구독 수명 주기, 상태 전이, 네 가지 갱신 동작,
그리고 마지막 스냅샷 우선 처리를 검증합니다.
"""
from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from bom_dashboard.data_sources.collection import (
    CollectionState,
    CollectionStats,
    LiveBomCollection,
    LoadStatus,
    SnapshotMailbox,
    to_iso_timestamp,
)
from bom_dashboard.data_sources.store import InMemoryRemoteStore
from bom_dashboard.domain.exceptions import SubscriptionError
from bom_dashboard.domain.models import TransferStatus
from bom_dashboard.domain.normalization import normalize_records

FIXED_NOW = datetime(2025, 6, 1, 9, 0, 0, tzinfo=timezone.utc)


def _clock():
    return FIXED_NOW


@pytest.fixture
def store(raw_records):
    return InMemoryRemoteStore.with_records(raw_records)


@pytest.fixture
def collection(store):
    live = LiveBomCollection(store, clock=_clock, threaded=False)
    yield live
    live.close()


# ============================================================
# 타임스탬프 / 우편함
# ============================================================

def test_to_iso_timestamp_matches_javascript_format():
    assert to_iso_timestamp(FIXED_NOW) == "2025-06-01T09:00:00.000Z"
    assert to_iso_timestamp(datetime(2025, 6, 1, 9, 0, 0)) == "2025-06-01T09:00:00.000Z"


def test_mailbox_keeps_only_latest_message():
    mailbox = SnapshotMailbox()
    mailbox.put("first")
    mailbox.put("second")
    mailbox.put("third")

    assert mailbox.has_pending()
    assert mailbox.get(timeout=0) == "third"
    assert mailbox.dropped == 2
    assert mailbox.get(timeout=0) is None


def test_mailbox_close_releases_waiters():
    mailbox = SnapshotMailbox()
    mailbox.close()

    assert mailbox.get(timeout=1) is None
    mailbox.put("ignored")
    assert not mailbox.has_pending()


# ============================================================
# 구독 / 상태 전이
# ============================================================

def test_collection_becomes_ready_with_items(collection, raw_records):
    state = collection.state

    assert state.status is LoadStatus.READY
    assert [i.component_material for i in state.items] == list(raw_records)
    assert state.updated_at == FIXED_NOW
    assert state.version == 1
    assert collection.get("CAP-100").value == 50
    assert collection.get("MISSING") is None


def test_collection_starts_loading_until_first_snapshot():
    class SilentStore(InMemoryRemoteStore):
        def subscribe(self, on_snapshot, on_error):
            return lambda: None

    live = LiveBomCollection(SilentStore(), threaded=False)

    assert live.state.is_loading
    assert live.items == ()
    live.close()


def test_empty_collection_is_ready_with_no_items():
    live = LiveBomCollection(InMemoryRemoteStore(), threaded=False)

    assert live.state.is_ready
    assert live.items == ()
    live.close()


def test_subscription_error_publishes_error_without_stale_items(collection, store):
    store.emit_error(SubscriptionError("Failed to fetch data from Firebase"))

    state = collection.state
    assert state.is_error
    assert state.error == "Failed to fetch data from Firebase"
    assert state.items == ()


def test_error_then_snapshot_recovers(collection, store):
    store.emit_error("connection lost")
    assert collection.state.is_error

    store.emit()
    assert collection.state.is_ready
    assert len(collection.items) == 4


def test_normalizer_failure_publishes_error(store):
    def broken(raw, resolver, **kwargs):
        raise RuntimeError("boom")

    live = LiveBomCollection(store, normalizer=broken, threaded=False)

    assert live.state.is_error
    assert live.state.error == "Failed to process data"
    live.close()


def test_remote_change_is_reflected(collection, store):
    store.replace_collection({"NEW-1": {"Standard_Price": 2, "Total_Qty": 3}})

    assert [i.component_material for i in collection.items] == ["NEW-1"]
    assert collection.state.version == 2


def test_close_releases_subscription_once(store):
    live = LiveBomCollection(store, threaded=False)
    assert store.subscriber_count == 1

    live.close()
    live.close()

    assert live.closed
    assert store.subscriber_count == 0


def test_context_manager_closes(store):
    with LiveBomCollection(store, threaded=False) as live:
        assert not live.closed
    assert live.closed
    assert store.subscriber_count == 0


def test_snapshots_after_close_are_ignored(store):
    live = LiveBomCollection(store, threaded=False)
    version = live.state.version
    live.close()

    store.replace_collection({})

    assert live.state.version == version
    assert len(live.items) == 4


def test_listeners_receive_published_states(collection, store):
    seen = []
    remove = collection.add_listener(seen.append)

    store.emit()
    remove()
    store.emit()

    assert len(seen) == 1
    assert isinstance(seen[0], CollectionState)
    assert seen[0].is_ready


def test_failing_listener_does_not_break_publishing(collection, store):
    def bad_listener(state):
        raise RuntimeError("listener failed")

    collection.add_listener(bad_listener)
    store.emit()

    assert collection.state.is_ready
    assert collection.state.version == 2


def test_collection_stats_from_state(collection):
    stats = CollectionStats.from_state(collection.state)

    assert stats.status == "ready"
    assert stats.item_count == 4
    assert stats.updated_at == "2025-06-01T09:00:00.000Z"


# ============================================================
# 갱신 동작
# ============================================================

def test_update_status_writes_status_and_timestamp_together(collection, store):
    assert collection.update_status("RES-200", TransferStatus.FINISHED) is True

    assert store.writes[-1] == {
        "bom_summary/RES-200/Transfer_Status": "Finished",
        "bom_summary/RES-200/Status_UpdatedAt": "2025-06-01T09:00:00.000Z",
    }
    assert collection.get("RES-200").transfer_status is TransferStatus.FINISHED
    assert collection.get("RES-200").status_updated_at == "2025-06-01T09:00:00.000Z"


def test_update_status_accepts_status_string(collection):
    assert collection.update_status("IC-300", "In Progress") is True
    assert collection.get("IC-300").transfer_status is TransferStatus.IN_PROGRESS


def test_failed_write_returns_false_and_keeps_state(collection, store):
    before = collection.state
    store.fail_writes = True

    assert collection.update_status("CAP-100", TransferStatus.NOT_START) is False

    assert collection.state is before
    assert collection.get("CAP-100").transfer_status is TransferStatus.FINISHED


@pytest.mark.parametrize("key", ["", "A/B", "A.B", None])
def test_invalid_key_is_rejected_without_write(collection, store, key):
    assert collection.update_status(key, TransferStatus.FINISHED) is False
    assert store.writes == []


def test_invalid_status_is_rejected_without_write(collection, store):
    assert collection.update_status("CAP-100", "Almost Done") is False
    assert store.writes == []


def test_update_expected_completion_sets_and_clears(collection, store):
    assert collection.update_expected_completion("RES-200", "2025-08-01") is True
    assert collection.get("RES-200").expected_completion == "2025-08-01"

    assert collection.update_expected_completion("RES-200", None) is True
    assert store.writes[-1] == {"bom_summary/RES-200/Expected_Completion": None}
    assert collection.get("RES-200").expected_completion is None


def test_update_expected_completion_rejects_garbage(collection, store):
    assert collection.update_expected_completion("RES-200", "someday-ish") is False
    assert store.writes == []


def test_update_planned_start(collection):
    assert collection.update_planned_start("IC-300", "2025-11-01") is True
    assert collection.get("IC-300").planned_start == "2025-11-01"

    assert collection.update_planned_start("IC-300", "") is True
    assert collection.get("IC-300").planned_start is None


def test_not_to_transfer_details_are_written_in_one_call(collection, store):
    assert collection.update_not_to_transfer_details("HOLD-400", "  Cost  ", None) is True

    assert store.writes == [
        {
            "bom_summary/HOLD-400/NotToTransferReason": "Cost",
            "bom_summary/HOLD-400/Brand": "",
        }
    ]
    item = collection.get("HOLD-400")
    assert item.not_to_transfer_reason == "Cost"
    assert item.brand == ""


def test_custom_collection_path_is_used_for_writes(raw_records):
    store = InMemoryRemoteStore.with_records(raw_records, collection_path="plants/au/bom")
    live = LiveBomCollection(store, clock=_clock, threaded=False)

    assert live.collection_path == "plants/au/bom"
    assert live.update_planned_start("IC-300", "2025-10-01") is True
    assert list(store.writes[-1]) == ["plants/au/bom/IC-300/Planned_Start"]
    assert live.get("IC-300").planned_start == "2025-10-01"
    live.close()


# ============================================================
# 작업 스레드 모드
# ============================================================

def test_threaded_collection_reaches_ready(store):
    with LiveBomCollection(store, clock=_clock) as live:
        state = live.wait_for(lambda s: not s.is_loading, timeout=5)

        assert state.is_ready
        assert len(state.items) == 4


def test_threaded_write_is_observed_through_next_snapshot(store):
    with LiveBomCollection(store, clock=_clock) as live:
        ready = live.wait_for(lambda s: s.is_ready, timeout=5)

        assert live.update_planned_start("IC-300", "2025-12-01") is True
        state = live.wait_for(
            lambda s: s.version > ready.version
            and any(i.planned_start == "2025-12-01" for i in s.items),
            timeout=5,
        )

        assert state.is_ready


def test_threaded_collection_settles_on_latest_snapshot(store):
    """정규화 중 도착한 스냅샷이 있으면 마지막 스냅샷이 최종 상태가 됨"""
    gate = threading.Event()
    calls = []

    def slow_normalizer(raw, resolver, **kwargs):
        calls.append(sorted(raw or {}))
        if len(calls) == 1:
            gate.wait(5)
        return normalize_records(raw, resolver, **kwargs)

    with LiveBomCollection(store, normalizer=slow_normalizer, clock=_clock) as live:
        store.replace_collection({"A": {"Total_Qty": 1}})
        store.replace_collection({"B": {"Total_Qty": 1}})
        gate.set()

        state = live.wait_for(
            lambda s: s.is_ready and [i.component_material for i in s.items] == ["B"],
            timeout=5,
        )

        assert [i.component_material for i in state.items] == ["B"]
        assert all(i.component_material != "A" for i in live.items)


def test_wait_for_times_out_with_current_state():
    class SilentStore(InMemoryRemoteStore):
        def subscribe(self, on_snapshot, on_error):
            return lambda: None

    with LiveBomCollection(SilentStore()) as live:
        state = live.wait_for(lambda s: s.is_ready, timeout=0.05)

    assert state.is_loading
