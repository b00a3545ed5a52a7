"""Unit tests for the listener registry."""

from __future__ import annotations

import logging
from typing import Any, List

import pytest

from models.events import DataViewEvent
from services.event_bus import EventBus, EventDispatchError


def test_listener_receives_payload_until_removed() -> None:
    bus = EventBus()
    received: List[Any] = []
    listener = received.append

    bus.add_event_listener("sensors-changed", listener)
    bus.trigger_event("sensors-changed", {"a": 1})
    assert received == [{"a": 1}]

    bus.remove_event_listener("sensors-changed", listener)
    bus.trigger_event("sensors-changed", {"a": 2})
    assert received == [{"a": 1}]


def test_registering_twice_invokes_once() -> None:
    bus = EventBus()
    calls: List[Any] = []

    def listener(data: Any) -> None:
        calls.append(data)

    bus.add_event_listener("error", listener)
    bus.add_event_listener("error", listener)
    bus.trigger_event("error", "boom")

    assert calls == ["boom"]
    assert bus.listener_count("error") == 1


def test_add_then_remove_restores_empty_registry() -> None:
    bus = EventBus()

    def listener(_data: Any) -> None:
        raise AssertionError("should not be called")

    bus.add_event_listener("current-time-changed", listener)
    bus.remove_event_listener("current-time-changed", listener)

    assert bus.has_listeners("current-time-changed") is False
    assert bus._listeners == {}
    bus.trigger_event("current-time-changed", None)


def test_trigger_without_listeners_is_a_no_op() -> None:
    bus = EventBus()

    bus.trigger_event("historical-data-changed", {"ignored": True})
    bus.trigger_event("never-registered")


def test_remove_unknown_listener_is_a_no_op() -> None:
    bus = EventBus()
    bus.remove_event_listener("sensors-changed", print)

    bus.add_event_listener("sensors-changed", len)
    bus.remove_event_listener("sensors-changed", print)
    assert bus.listener_count("sensors-changed") == 1


def test_enum_member_and_name_share_a_slot() -> None:
    bus = EventBus()
    received: List[Any] = []

    bus.add_event_listener(DataViewEvent.SENSORS_CHANGED, received.append)
    bus.trigger_event("sensors-changed", 1)
    bus.remove_event_listener("sensors-changed", received.append)
    bus.trigger_event(DataViewEvent.SENSORS_CHANGED, 2)

    assert received == [1]


def test_listeners_run_in_registration_order() -> None:
    bus = EventBus()
    order: List[str] = []

    bus.add_event_listener("error", lambda _d: order.append("first"))
    bus.add_event_listener("error", lambda _d: order.append("second"))
    bus.add_event_listener("error", lambda _d: order.append("third"))
    bus.trigger_event("error")

    assert order == ["first", "second", "third"]


def test_self_removal_during_dispatch_does_not_skip_others() -> None:
    bus = EventBus()
    calls: List[str] = []

    def once(_data: Any) -> None:
        calls.append("once")
        bus.remove_event_listener("sensors-changed", once)

    def other(_data: Any) -> None:
        calls.append("other")

    bus.add_event_listener("sensors-changed", once)
    bus.add_event_listener("sensors-changed", other)

    bus.trigger_event("sensors-changed")
    bus.trigger_event("sensors-changed")

    assert calls == ["once", "other", "other"]


def test_listener_added_during_dispatch_waits_for_next_event() -> None:
    bus = EventBus()
    calls: List[str] = []

    def late(_data: Any) -> None:
        calls.append("late")

    def registrar(_data: Any) -> None:
        calls.append("registrar")
        bus.add_event_listener("error", late)

    bus.add_event_listener("error", registrar)
    bus.trigger_event("error")
    assert calls == ["registrar"]

    bus.trigger_event("error")
    assert calls == ["registrar", "registrar", "late"]


def test_failing_listener_does_not_stop_dispatch(caplog) -> None:
    bus = EventBus()
    calls: List[str] = []

    def broken(_data: Any) -> None:
        raise RuntimeError("listener exploded")

    bus.add_event_listener("sensors-changed", broken)
    bus.add_event_listener("sensors-changed", lambda _d: calls.append("after"))

    with caplog.at_level(logging.ERROR), pytest.raises(EventDispatchError) as excinfo:
        bus.trigger_event("sensors-changed", None)

    assert calls == ["after"]
    error = excinfo.value
    assert error.event_type == "sensors-changed"
    assert len(error.failures) == 1
    assert error.failures[0][0] is broken
    assert isinstance(error.failures[0][1], RuntimeError)
    assert isinstance(error.__cause__, RuntimeError)

    records = [record for record in caplog.records if record.name == "services.event_bus"]
    assert any(getattr(record, "event_type", None) == "sensors-changed" for record in records)
    assert any("broken" in getattr(record, "listener", "") for record in records)


def test_failures_only_logged_when_raising_disabled(caplog) -> None:
    bus = EventBus(raise_listener_errors=False)

    def broken(_data: Any) -> None:
        raise ValueError("bad payload")

    bus.add_event_listener("error", broken)
    with caplog.at_level(logging.ERROR):
        bus.trigger_event("error", {})

    assert any(record.getMessage() == "Listener failed" for record in caplog.records)
