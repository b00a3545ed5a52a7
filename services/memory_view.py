"""Data view backed by in-process state, with validated mutators."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Tuple

from models.entities import (
    ChannelID,
    HistoricalData,
    Sensor,
    SensorID,
    Timerange,
    ensure_utc,
)
from models.events import (
    CurrentChannelChanged,
    CurrentSensorChanged,
    CurrentTimeChanged,
    DataViewError,
    DataViewEvent,
    HistoricalDataChanged,
    SensorsChanged,
)
from services.consistency import assert_consistent
from services.data_view import DataView
from services.event_bus import EventBus, EventDispatchError

logger = logging.getLogger(__name__)

_Pending = List[Tuple[DataViewEvent, object]]


def _first_channel(sensor: Optional[Sensor]) -> Optional[ChannelID]:
    if sensor is None:
        return None
    return next(iter(sensor.model.channels), None)


class InMemoryDataView(DataView):
    """Concrete data view whose state is changed through its ``set_*`` methods.

    Each mutator validates its input, applies every dependent change (for
    example clearing the selection when the selected sensor disappears) and
    only then triggers the matching events, so listeners always read a
    consistent view.
    """

    def __init__(
        self,
        timerange: Optional[Timerange] = None,
        sensors: Optional[Mapping[SensorID, Sensor]] = None,
        historical_data: Optional[Mapping[SensorID, HistoricalData]] = None,
        current_time: Optional[datetime] = None,
        current_sensor_id: Optional[SensorID] = None,
        current_channel_id: Optional[ChannelID] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        super().__init__(event_bus)
        if timerange is None:
            now = datetime.now(timezone.utc)
            timerange = Timerange(start=now, end=now)
        self._timerange = timerange
        self._sensors: Dict[SensorID, Sensor] = dict(sensors or {})
        self._historical_data: Dict[SensorID, HistoricalData] = dict(historical_data or {})
        self._current_time = (
            ensure_utc(current_time) if current_time is not None else timerange.end
        )
        self._current_sensor_id = current_sensor_id
        self._current_channel_id = current_channel_id
        assert_consistent(self)

    # ---- accessors ---------------------------------------------------------

    def get_timerange(self) -> Timerange:
        return self._timerange

    def get_sensors(self) -> Dict[SensorID, Sensor]:
        return dict(self._sensors)

    def get_historical_data(self) -> Dict[SensorID, HistoricalData]:
        return dict(self._historical_data)

    def get_current_time(self) -> datetime:
        return self._current_time

    def get_current_sensor_id(self) -> Optional[SensorID]:
        return self._current_sensor_id

    def get_current_channel_id(self) -> Optional[ChannelID]:
        return self._current_channel_id

    # ---- mutators ----------------------------------------------------------

    def set_timerange(self, timerange: Timerange) -> None:
        self._dispatch(self._apply_timerange(timerange))

    def set_sensors(self, sensors: Mapping[SensorID, Sensor]) -> None:
        self._dispatch(self._apply_sensors(sensors))

    def set_historical_data(self, historical_data: Mapping[SensorID, HistoricalData]) -> None:
        self._dispatch(self._apply_historical_data(historical_data))

    def set_current_time(self, instant: datetime) -> None:
        instant = ensure_utc(instant)
        if not self._timerange.contains(instant):
            raise ValueError(
                f"Time {instant.isoformat()} lies outside the current timerange "
                f"{self._timerange.start.isoformat()}..{self._timerange.end.isoformat()}."
            )
        if instant == self._current_time:
            return
        self._current_time = instant
        self._dispatch(
            [(DataViewEvent.CURRENT_TIME_CHANGED, CurrentTimeChanged(current_time=instant))]
        )

    def set_current_sensor(self, sensor_id: Optional[SensorID]) -> None:
        self._dispatch(self._apply_current_sensor(sensor_id))

    def set_current_channel(self, channel_id: Optional[ChannelID]) -> None:
        if channel_id is not None:
            sensor = (
                self._sensors.get(self._current_sensor_id)
                if self._current_sensor_id is not None
                else None
            )
            if sensor is None:
                raise KeyError(f"Channel {channel_id!r} cannot be selected without a current sensor.")
            if channel_id not in sensor.model.channels:
                raise KeyError(
                    f"Channel {channel_id!r} not provided by sensor {self._current_sensor_id!r}."
                )
        self._dispatch(self._select_channel(channel_id))

    def report_error(self, message: str, reason: Optional[str] = None) -> None:
        """Announce a recoverable failure without touching the current state."""
        logger.warning(message, extra={"reason": reason})
        self.trigger_event(DataViewEvent.ERROR, DataViewError(message=message, reason=reason))

    # ---- helpers -----------------------------------------------------------
    #
    # The ``_apply_*`` helpers change state and return the events still to be
    # triggered, so several changes can be applied before any listener runs.

    def _apply_timerange(self, timerange: Timerange) -> _Pending:
        pending: _Pending = []
        self._timerange = timerange
        clamped = timerange.clamp(self._current_time)
        if clamped != self._current_time:
            self._current_time = clamped
            pending.append(
                (DataViewEvent.CURRENT_TIME_CHANGED, CurrentTimeChanged(current_time=clamped))
            )
        return pending

    def _apply_sensors(self, sensors: Mapping[SensorID, Sensor]) -> _Pending:
        pending: _Pending = []
        self._sensors = dict(sensors)
        pending.append(
            (DataViewEvent.SENSORS_CHANGED, SensorsChanged(sensors=self.get_sensors()))
        )

        stale = [key for key in self._historical_data if key not in self._sensors]
        if stale:
            for key in stale:
                del self._historical_data[key]
            logger.info(
                "Dropped historical data of removed sensors",
                extra={"sensor_id": stale},
            )
            pending.append(self._historical_data_event())

        if self._current_sensor_id is not None:
            sensor = self._sensors.get(self._current_sensor_id)
            if sensor is None:
                pending.extend(self._select_sensor(None))
            elif (
                self._current_channel_id is not None
                and self._current_channel_id not in sensor.model.channels
            ):
                pending.extend(self._select_channel(_first_channel(sensor)))
        return pending

    def _apply_historical_data(self, historical_data: Mapping[SensorID, HistoricalData]) -> _Pending:
        unknown = sorted(key for key in historical_data if key not in self._sensors)
        if unknown:
            raise KeyError(f"Historical data references unknown sensors: {', '.join(unknown)}")
        self._historical_data = dict(historical_data)
        return [self._historical_data_event()]

    def _apply_current_sensor(self, sensor_id: Optional[SensorID]) -> _Pending:
        if sensor_id is not None and sensor_id not in self._sensors:
            raise KeyError(f"Sensor {sensor_id!r} not found.")
        return self._select_sensor(sensor_id)

    def _historical_data_event(self) -> Tuple[DataViewEvent, object]:
        return (
            DataViewEvent.HISTORICAL_DATA_CHANGED,
            HistoricalDataChanged(historical_data=self.get_historical_data()),
        )

    def _select_sensor(self, sensor_id: Optional[SensorID]) -> _Pending:
        pending: _Pending = []
        if sensor_id != self._current_sensor_id:
            self._current_sensor_id = sensor_id
            pending.append(
                (DataViewEvent.CURRENT_SENSOR_CHANGED, CurrentSensorChanged(sensor_id=sensor_id))
            )
        sensor = self._sensors.get(sensor_id) if sensor_id is not None else None
        channel_id = self._current_channel_id
        if sensor is None:
            channel_id = None
        elif channel_id is None or channel_id not in sensor.model.channels:
            channel_id = _first_channel(sensor)
        pending.extend(self._select_channel(channel_id))
        return pending

    def _select_channel(self, channel_id: Optional[ChannelID]) -> _Pending:
        if channel_id == self._current_channel_id:
            return []
        self._current_channel_id = channel_id
        return [
            (DataViewEvent.CURRENT_CHANNEL_CHANGED, CurrentChannelChanged(channel_id=channel_id))
        ]

    def _dispatch(self, pending: _Pending) -> None:
        """Trigger every pending event, even when listeners of earlier ones fail."""
        errors: List[EventDispatchError] = []
        for event_type, payload in pending:
            try:
                self.trigger_event(event_type, payload)
            except EventDispatchError as exc:
                errors.append(exc)
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise EventDispatchError(
                ", ".join(error.event_type for error in errors),
                [failure for error in errors for failure in error.failures],
            ) from errors[0]
