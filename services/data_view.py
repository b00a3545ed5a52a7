"""Abstract accessor contract over sensor data, with change notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from models.entities import ChannelID, HistoricalData, Sensor, SensorID, Timerange
from services.event_bus import EventBus, EventType, Listener


class DataView(ABC):
    """Read-only query surface a sensor-data backend must provide.

    Accessors return snapshots: every call builds a fresh mapping, and the
    entities inside it are immutable. Consumers subscribe to
    :class:`~models.events.DataViewEvent` notifications and call the
    accessors again when an event says their copy is stale; they should not
    poll.

    Backends that hit a recoverable fetch failure trigger ``error`` and keep
    returning their last good results instead of raising from an accessor.
    """

    def __init__(self, event_bus: Optional[EventBus] = None) -> None:
        self._events = event_bus if event_bus is not None else EventBus()

    @property
    def events(self) -> EventBus:
        return self._events

    def add_event_listener(self, event_type: EventType, listener: Listener) -> None:
        self._events.add_event_listener(event_type, listener)

    def remove_event_listener(self, event_type: EventType, listener: Listener) -> None:
        self._events.remove_event_listener(event_type, listener)

    def trigger_event(self, event_type: EventType, data: Any = None) -> None:
        self._events.trigger_event(event_type, data)

    @abstractmethod
    def get_timerange(self) -> Timerange:
        """Time span for which historical data may currently be queried."""
        raise NotImplementedError

    @abstractmethod
    def get_sensors(self) -> Dict[SensorID, Sensor]:
        """All sensors currently in scope, indexed by sensor ID."""
        raise NotImplementedError

    @abstractmethod
    def get_historical_data(self) -> Dict[SensorID, HistoricalData]:
        """Samples for the current time range; keys are a subset of ``get_sensors()``."""
        raise NotImplementedError

    @abstractmethod
    def get_current_time(self) -> datetime:
        """Instant selected for current-value display, inside ``get_timerange()``."""
        raise NotImplementedError

    @abstractmethod
    def get_current_sensor_id(self) -> Optional[SensorID]:
        """Focused sensor, or ``None`` when nothing is selected."""
        raise NotImplementedError

    @abstractmethod
    def get_current_channel_id(self) -> Optional[ChannelID]:
        """Focused channel of the current sensor's model, or ``None``."""
        raise NotImplementedError
