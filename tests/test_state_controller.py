"""
Tests for StateController: lifecycle, optimistic apply, local write, background push.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from dialogics.domains import operations as ops
from dialogics.domains.models import AppState, state_to_dict
from dialogics.domains.seed import INITIAL_STATE
from dialogics.infrastructure.gateway import PersistenceGateway
from dialogics.infrastructure.local_cache import LocalCache, LocalCacheError
from dialogics.infrastructure.store_client import RemoteStoreClient
from dialogics.services.state_controller import StateController, StateNotLoadedError


class RecordingGateway:
    """Gateway double that records local saves and remote pushes; can block the first push."""

    def __init__(self, initial: AppState = INITIAL_STATE, block_first: bool = False) -> None:
        self.initial = initial
        self.loads = 0
        self.saved: list[AppState] = []
        self.pushed: list[dict[str, Any]] = []
        self.started = threading.Event()
        self.release = threading.Event()
        if not block_first:
            self.release.set()

    def load(self) -> AppState:
        self.loads += 1
        return self.initial

    def save_local(self, state: AppState) -> dict[str, Any]:
        self.saved.append(state)
        return state_to_dict(state)

    def push_remote(self, document: dict[str, Any]) -> bool:
        self.started.set()
        self.release.wait(5)
        self.pushed.append(document)
        return True


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def controller(gateway: RecordingGateway):
    c = StateController(gateway)
    yield c
    c.close(timeout=5)


def test_rejects_mutations_before_initialize(controller: StateController) -> None:
    assert controller.is_loaded is False
    with pytest.raises(StateNotLoadedError):
        controller.current_snapshot()
    with pytest.raises(StateNotLoadedError):
        controller.apply(INITIAL_STATE)
    with pytest.raises(StateNotLoadedError):
        controller.dispatch(ops.toggle_story_visibility, "s1")


def test_initialize_loads_once(controller: StateController, gateway: RecordingGateway) -> None:
    first = controller.initialize()
    second = controller.initialize()
    assert first is second is INITIAL_STATE
    assert gateway.loads == 1
    assert controller.is_loaded is True


def test_apply_is_visible_immediately_and_saved(controller: StateController, gateway: RecordingGateway) -> None:
    controller.initialize()
    nxt = ops.toggle_story_visibility(INITIAL_STATE, "s2")
    assert controller.apply(nxt) is nxt
    assert controller.current_snapshot() is nxt
    # the local write is synchronous
    assert gateway.saved == [nxt]
    assert controller.saved_version == 1
    assert controller.flush(timeout=5) is True
    assert gateway.pushed == [state_to_dict(nxt)]
    assert controller.pushed_version == controller.version == 1


def test_apply_does_not_wait_for_push() -> None:
    gw = RecordingGateway(block_first=True)
    c = StateController(gw)
    c.initialize()
    nxt = ops.delete_story(INITIAL_STATE, "s2")
    c.apply(nxt)
    assert gw.started.wait(5)
    # the push is still blocked, yet the new snapshot is current and saved locally
    assert c.current_snapshot() is nxt
    assert gw.saved == [nxt]
    assert gw.pushed == []
    assert c.pushed_version == 0
    gw.release.set()
    c.close(timeout=5)
    assert gw.pushed == [state_to_dict(nxt)]


def test_superseded_snapshots_are_dropped_in_order() -> None:
    gw = RecordingGateway(block_first=True)
    c = StateController(gw)
    c.initialize()
    s1 = c.dispatch(ops.add_comment, "s1", "A", "a@x.com", "one")
    assert gw.started.wait(5)
    s2 = c.dispatch(ops.add_comment, "s1", "B", "b@x.com", "two")
    s3 = c.dispatch(ops.add_comment, "s1", "C", "c@x.com", "three")
    assert c.current_snapshot() is s3
    # every snapshot reaches the local cache, in order
    assert gw.saved == [s1, s2, s3]
    gw.release.set()
    assert c.flush(timeout=5)
    assert gw.pushed == [state_to_dict(s1), state_to_dict(s3)]
    assert c.dropped_count == 1
    assert c.pushed_version == 3
    c.close(timeout=5)
    assert c.dropped_count == 1


def test_dispatch_noop_is_not_saved(controller: StateController, gateway: RecordingGateway) -> None:
    controller.initialize()
    out = controller.dispatch(ops.set_booking_status, "missing", "confirmed")
    assert out is INITIAL_STATE
    assert controller.version == 0
    assert controller.flush(timeout=5)
    assert gateway.saved == []
    assert gateway.pushed == []
    assert controller.dropped_count == 0


def test_back_to_back_mutations_apply_in_order(controller: StateController) -> None:
    controller.initialize()
    controller.dispatch(ops.submit_booking, "Bob", "b@x.com", "1", "2025-01-01", "t1")
    booking_id = controller.current_snapshot().bookings[0].id
    controller.dispatch(ops.set_booking_status, booking_id, "confirmed")
    controller.dispatch(ops.set_booking_status, booking_id, "rejected")
    assert controller.current_snapshot().bookings[0].status == "rejected"
    assert controller.version == 3


def test_failed_local_save_keeps_snapshot() -> None:
    cache = MagicMock(spec=LocalCache)
    cache.write.side_effect = LocalCacheError("disk full")
    remote = MagicMock(spec=RemoteStoreClient)
    c = StateController(PersistenceGateway(remote, cache))
    with patch.object(PersistenceGateway, "load", return_value=INITIAL_STATE):
        c.initialize()
    nxt = ops.toggle_story_visibility(INITIAL_STATE, "s1")
    c.apply(nxt)
    assert c.flush(timeout=5)
    assert c.current_snapshot() is nxt
    assert isinstance(c.last_save_error, LocalCacheError)
    assert c.saved_version == 0
    # nothing reaches the remote when the local write failed
    remote.push.assert_not_called()
    c.close(timeout=5)


def test_local_cache_tracks_latest_snapshot_while_push_is_slow(tmp_path: Path) -> None:
    cache = LocalCache(cache_dir=tmp_path, key="venus_slow_remote")
    remote = RemoteStoreClient(endpoint="https://store.test/api.php", timeout=1)
    gate = threading.Event()

    def slow_post(*args: Any, **kwargs: Any) -> MagicMock:
        gate.wait(5)
        return MagicMock(status_code=200)

    with patch.object(PersistenceGateway, "load", return_value=INITIAL_STATE), \
            patch("dialogics.infrastructure.store_client.requests.post", side_effect=slow_post) as post:
        c = StateController(PersistenceGateway(remote, cache))
        c.initialize()
        for i in range(3):
            c.dispatch(ops.add_comment, "s1", f"User {i}", "u@x.com", f"comment {i}")
            assert cache.read() == state_to_dict(c.current_snapshot())
        c.dispatch(ops.toggle_story_visibility, "s2")
        assert cache.read() == state_to_dict(c.current_snapshot())
        gate.set()
        c.close(timeout=5)

    assert c.pushed_version == c.version == 4
    assert post.call_args.kwargs["json"] == state_to_dict(c.current_snapshot())


def test_end_to_end_with_remote_down(tmp_path: Path) -> None:
    """Mutations land in the local cache and survive a restart while the remote is down."""
    cache = LocalCache(cache_dir=tmp_path, key="venus_e2e")
    remote = RemoteStoreClient(endpoint="https://store.test/api.php", timeout=1)
    offline = requests.exceptions.ConnectionError("offline")
    with patch("dialogics.infrastructure.store_client.requests.get", side_effect=offline), \
            patch("dialogics.infrastructure.store_client.requests.post", side_effect=offline):
        c = StateController(PersistenceGateway(remote, cache))
        c.initialize()
        c.dispatch(ops.add_comment, "s1", "Ann", "a@x.com", "Great!")
        c.dispatch(ops.toggle_comment_visibility, "s1", "c1")
        c.close(timeout=5)
        expected = c.current_snapshot()

        restarted = StateController(PersistenceGateway(remote, cache))
        assert restarted.initialize() == expected
    assert cache.read() == state_to_dict(expected)
    assert c.last_save_error is None
    assert c.saved_version == 2
    assert c.pushed_version == 0


def test_register_shutdown_closes_on_exit(controller: StateController) -> None:
    with patch("dialogics.services.state_controller.atexit.register") as register:
        controller.register_shutdown()
    register.assert_called_once_with(controller.close)


def test_close_pushes_pending_snapshot() -> None:
    gw = RecordingGateway(block_first=True)
    c = StateController(gw)
    c.initialize()
    c.dispatch(ops.create_topic, "Resilience", "Bouncing back")
    assert gw.started.wait(5)
    last = c.dispatch(ops.delete_topic, "t1")
    threading.Timer(0.05, gw.release.set).start()
    c.close()
    assert gw.pushed[-1] == state_to_dict(last)


def test_grounding_context_tracks_current_topics(controller: StateController) -> None:
    controller.initialize()
    controller.dispatch(ops.create_topic, "Resilience", "Bouncing back")
    controller.dispatch(ops.delete_topic, "t1")
    titles = [t["title"] for t in controller.grounding_context()]
    assert "Resilience" in titles
    assert "Strategic Leadership in the AI Era" not in titles
    assert len(titles) == 4
