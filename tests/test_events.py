"""get/set notifications: delivered asynchronously, never block or fail the caller."""

from __future__ import annotations

import threading
import time

import pytest

from endb import Database, Entry
from endb.events import EventBus


@pytest.fixture
def db():
    d = Database("events", memory=True)
    yield d
    d.close()


def test_set_and_get_notify_listeners(db):
    seen = []
    db.on("set", lambda e: seen.append(("set", e)))
    db.on("get", lambda e: seen.append(("get", e)))
    db.set("a", {"x": 1})
    db.get("a")
    db.events.wait_idle()
    assert seen == [("set", Entry("a", {"x": 1})), ("get", Entry("a", {"x": 1}))]


def test_get_of_missing_key_does_not_notify(db):
    seen = []
    db.on("get", seen.append)
    db.get("missing")
    db.events.wait_idle()
    assert seen == []


def test_slow_listener_does_not_block_caller(db):
    release = threading.Event()
    delivered = []

    def slow(entry):
        release.wait(5)
        delivered.append(entry)

    db.on("set", slow)
    db.set("a", 1)
    # set returned while the listener is still blocked
    assert delivered == []
    release.set()
    db.events.wait_idle()
    assert delivered == [Entry("a", 1)]


def test_failing_listener_is_isolated(db, caplog):
    seen = []

    def broken(entry):
        raise RuntimeError("boom")

    db.on("set", broken)
    db.on("set", seen.append)
    with caplog.at_level("WARNING", logger="endb.events"):
        assert db.set("a", 1) == Entry("a", 1)
        db.events.wait_idle()
    assert seen == [Entry("a", 1)]
    assert any("boom" in r.getMessage() for r in caplog.records)


def test_off_removes_listener(db):
    seen = []
    db.on("set", seen.append)
    assert db.off("set", seen.append) is True
    assert db.off("set", seen.append) is False
    db.set("a", 1)
    db.events.wait_idle()
    assert seen == []


def test_unknown_event_rejected():
    bus = EventBus()
    with pytest.raises(ValueError):
        bus.on("delete", print)
    with pytest.raises(TypeError):
        bus.on("set", "not callable")


def test_emit_without_listeners_queues_nothing():
    bus = EventBus()
    assert bus.emit("set", Entry("a", 1)) == 0
    bus.close()


def _blocking_listener(release, seen):
    def listener(entry):
        release.wait(5)
        seen.append(entry)

    return listener


def test_set_payload_is_the_stored_value_not_the_callers_object(db):
    release = threading.Event()
    seen = []
    db.on("set", _blocking_listener(release, seen))
    value = {"x": 1}
    db.set("a", value)
    value["x"] = 999
    release.set()
    db.events.wait_idle()
    assert seen == [Entry("a", {"x": 1})]


def test_get_payload_is_independent_of_returned_value(db):
    db.set("a", {"x": 1})
    release = threading.Event()
    seen = []
    db.on("get", _blocking_listener(release, seen))
    got = db.get("a")
    got["x"] = 999
    release.set()
    db.events.wait_idle()
    assert seen == [Entry("a", {"x": 1})]


def test_close_does_not_wait_for_slow_listener(db):
    release = threading.Event()
    seen = []
    db.on("set", _blocking_listener(release, seen))
    db.set("a", 1)
    started = time.monotonic()
    db.close()
    elapsed = time.monotonic() - started
    release.set()
    assert elapsed < 1.0
    assert db.closed


def test_emit_after_close_queues_nothing():
    bus = EventBus()
    bus.on("set", print)
    bus.close()
    assert bus.emit("set", Entry("a", 1)) == 0


def test_blocked_listener_cannot_grow_backlog_past_bound(caplog):
    bus = EventBus("bounded", max_pending=2)
    release = threading.Event()
    seen = []
    bus.on("set", _blocking_listener(release, seen))
    with caplog.at_level("WARNING", logger="endb.events"):
        queued = sum(bus.emit("set", i) for i in range(10))
    assert bus.pending() <= 2
    # the worker may already hold one item outside the queue
    assert 2 <= queued <= 3
    assert any("Dropped" in r.getMessage() for r in caplog.records)
    release.set()
    bus.wait_idle()
    assert len(seen) == queued
    assert seen[:2] == [0, 1]
    bus.close()


def test_max_pending_must_be_positive():
    with pytest.raises(ValueError):
        EventBus(max_pending=0)
