# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from gloski.events.emitter import EventEmitter
from gloski.events.types import StreamEvent
from gloski.observability import logger


class DataOnlyEmitter(EventEmitter):
    EVENTS = frozenset({StreamEvent.DATA, StreamEvent.CLOSE})


# ---------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------

def test_emit_returns_false_without_listeners():
    emitter = EventEmitter()

    assert emitter.emit("data", "x") is False


def test_on_and_emit_deliver_args():
    emitter = EventEmitter()
    received: list[Any] = []

    emitter.on(StreamEvent.DATA, received.append)

    assert emitter.emit("data", "hello") is True
    assert received == ["hello"]


def test_string_and_enum_names_are_interchangeable():
    emitter = EventEmitter()
    received: list[str] = []

    emitter.on("data", received.append)
    emitter.emit(StreamEvent.DATA, "a")

    assert received == ["a"]
    assert emitter.listener_count(StreamEvent.DATA) == 1


def test_same_listener_registered_twice_fires_once():
    emitter = EventEmitter()
    calls: list[str] = []

    def listener(text: str) -> None:
        calls.append(text)

    emitter.on("data", listener)
    emitter.on("data", listener)
    emitter.emit("data", "x")

    assert calls == ["x"]
    assert emitter.listener_count("data") == 1


def test_off_removes_listener():
    emitter = EventEmitter()
    calls: list[str] = []

    emitter.on("data", calls.append)
    emitter.off("data", calls.append)

    assert emitter.emit("data", "x") is False
    assert calls == []


def test_subscription_unsubscribe_is_idempotent():
    emitter = EventEmitter()
    calls: list[str] = []

    sub = emitter.on("data", calls.append)
    sub.unsubscribe()
    sub.unsubscribe()

    emitter.emit("data", "x")
    assert calls == []
    assert sub.active is False


def test_once_fires_a_single_time():
    emitter = EventEmitter()
    calls: list[int] = []

    emitter.once("reconnecting", calls.append)
    emitter.emit("reconnecting", 1)
    emitter.emit("reconnecting", 2)

    assert calls == [1]
    assert emitter.listener_count("reconnecting") == 0


def test_remove_all_listeners_for_one_event_or_all():
    emitter = EventEmitter()
    emitter.on("data", lambda _: None)
    emitter.on("close", lambda _: None)

    emitter.remove_all_listeners("data")
    assert emitter.listener_count("data") == 0
    assert emitter.listener_count("close") == 1

    emitter.remove_all_listeners()
    assert emitter.listener_count("close") == 0


def test_unknown_event_names_raise():
    with pytest.raises(ValueError):
        EventEmitter().on("bogus", lambda: None)


def test_subclass_rejects_events_it_never_emits():
    emitter = DataOnlyEmitter()

    emitter.on("data", lambda _: None)
    with pytest.raises(ValueError):
        emitter.on("stats", lambda _: None)


# ---------------------------------------------------------------------
# Listener failures
# ---------------------------------------------------------------------

def test_throwing_listener_does_not_block_others(monkeypatch: pytest.MonkeyPatch):
    logged: list[str] = []
    monkeypatch.setattr(logger, "_print", logged.append)

    emitter = EventEmitter()
    received: list[str] = []

    def broken(_: str) -> None:
        raise RuntimeError("listener bug")

    emitter.on("data", broken)
    emitter.on("data", received.append)

    assert emitter.emit("data", "payload") is True
    assert received == ["payload"]

    errors = [json.loads(line) for line in logged]
    assert errors[0]["event_type"] == "LISTENER_ERROR"
    assert errors[0]["event"] == "data"
    assert "listener bug" in errors[0]["error"]


# ---------------------------------------------------------------------
# Re-entrancy
# ---------------------------------------------------------------------

def test_listener_added_during_emit_is_not_called_in_same_emit():
    emitter = EventEmitter()
    late: list[str] = []

    def adder(_: str) -> None:
        emitter.on("data", late.append)

    emitter.on("data", adder)
    emitter.emit("data", "first")
    assert late == []

    emitter.emit("data", "second")
    assert late == ["second"]


def test_listener_removed_during_emit_is_skipped():
    emitter = EventEmitter()
    calls: list[str] = []

    def second(text: str) -> None:
        calls.append("second:" + text)

    def remover(_: str) -> None:
        emitter.off("data", second)

    # Whichever runs first, `second` must not run after being removed
    emitter.on("data", remover)
    emitter.on("data", second)
    emitter.emit("data", "x")
    emitter.emit("data", "y")

    assert "second:y" not in calls
    assert calls.count("second:x") <= 1


def test_nested_emit_from_listener():
    emitter = EventEmitter()
    seen: list[Any] = []

    def on_data(text: str) -> None:
        seen.append(text)
        emitter.emit("close", "nested")

    emitter.on("data", on_data)
    emitter.on("close", seen.append)
    emitter.emit("data", "outer")

    assert seen == ["outer", "nested"]
