"""Synchronous listener registry used by data views to signal stale state."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple, Union

from logging_config import describe_listener

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]
EventType = Union[str, Enum]


class EventDispatchError(RuntimeError):
    """Raised after a dispatch in which one or more listeners failed."""

    def __init__(self, event_type: str, failures: List[Tuple[Listener, BaseException]]) -> None:
        self.event_type = event_type
        self.failures = list(failures)
        super().__init__(
            f"{len(self.failures)} listener(s) failed while handling {event_type!r}"
        )


def _event_key(event_type: EventType) -> str:
    if isinstance(event_type, Enum):
        return str(event_type.value)
    return event_type


class EventBus:
    """Maps event names to ordered sets of listeners.

    A listener is registered at most once per event name. Dispatch works on a
    snapshot of the listeners, so listeners may add or remove registrations
    while an event is being delivered. A failing listener does not stop the
    others: failures are logged and, unless ``raise_listener_errors`` is off,
    re-raised together as :class:`EventDispatchError` once every listener ran.
    """

    def __init__(self, raise_listener_errors: bool = True) -> None:
        self.raise_listener_errors = raise_listener_errors
        self._listeners: Dict[str, Dict[Listener, None]] = {}

    def add_event_listener(self, event_type: EventType, listener: Listener) -> None:
        key = _event_key(event_type)
        self._listeners.setdefault(key, {})[listener] = None

    def remove_event_listener(self, event_type: EventType, listener: Listener) -> None:
        key = _event_key(event_type)
        listeners = self._listeners.get(key)
        if listeners is None:
            return
        listeners.pop(listener, None)
        if not listeners:
            del self._listeners[key]

    def trigger_event(self, event_type: EventType, data: Any = None) -> None:
        key = _event_key(event_type)
        listeners = self._listeners.get(key)
        if not listeners:
            return

        snapshot = tuple(listeners)
        logger.debug(
            "Dispatching event",
            extra={"event_type": key, "listener_count": len(snapshot)},
        )
        failures: List[Tuple[Listener, BaseException]] = []
        for listener in snapshot:
            try:
                listener(data)
            except Exception as exc:
                logger.exception(
                    "Listener failed",
                    extra={"event_type": key, "listener": describe_listener(listener)},
                )
                failures.append((listener, exc))

        if failures and self.raise_listener_errors:
            raise EventDispatchError(key, failures) from failures[0][1]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(_event_key(event_type), ()))

    def has_listeners(self, event_type: EventType) -> bool:
        return self.listener_count(event_type) > 0
