"""Event names emitted by data views and the payloads they carry."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from models.entities import ChannelID, HistoricalData, Sensor, SensorID


class DataViewEvent(str, Enum):
    """Closed set of notifications a data view can emit."""

    SENSORS_CHANGED = "sensors-changed"
    HISTORICAL_DATA_CHANGED = "historical-data-changed"
    CURRENT_TIME_CHANGED = "current-time-changed"
    CURRENT_SENSOR_CHANGED = "current-sensor-changed"
    CURRENT_CHANNEL_CHANGED = "current-channel-changed"
    ERROR = "error"


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)


class SensorsChanged(_Payload):
    sensors: Dict[SensorID, Sensor]


class HistoricalDataChanged(_Payload):
    historical_data: Dict[SensorID, HistoricalData]


class CurrentTimeChanged(_Payload):
    current_time: datetime


class CurrentSensorChanged(_Payload):
    sensor_id: Optional[SensorID] = None


class CurrentChannelChanged(_Payload):
    channel_id: Optional[ChannelID] = None


class DataViewError(_Payload):
    """Recoverable failure reported by a backend; previous data stays valid."""

    message: str
    reason: Optional[str] = None
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


EVENT_PAYLOADS: Dict[DataViewEvent, Type[_Payload]] = {
    DataViewEvent.SENSORS_CHANGED: SensorsChanged,
    DataViewEvent.HISTORICAL_DATA_CHANGED: HistoricalDataChanged,
    DataViewEvent.CURRENT_TIME_CHANGED: CurrentTimeChanged,
    DataViewEvent.CURRENT_SENSOR_CHANGED: CurrentSensorChanged,
    DataViewEvent.CURRENT_CHANNEL_CHANGED: CurrentChannelChanged,
    DataViewEvent.ERROR: DataViewError,
}
