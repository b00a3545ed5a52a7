"""Value shapes describing sensors, their models and their recorded data."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SensorID = str
ChannelID = str
ModelID = str


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Channel(BaseModel):
    """A measurable quantity a sensor model can report."""

    model_config = ConfigDict(frozen=True)

    name: str
    desc: str = ""
    type: str = "double"
    unit: str = ""
    min: float
    max: float

    @model_validator(mode="after")
    def _check_range(self) -> "Channel":
        if not self.min <= self.max:
            raise ValueError(f"channel min ({self.min}) must not exceed max ({self.max})")
        return self


class SensorModel(BaseModel):
    """Sensor type definition naming the channels its sensors produce."""

    model_config = ConfigDict(frozen=True)

    name: str
    desc: str = ""
    channels: Dict[ChannelID, Channel] = Field(default_factory=dict)


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float


class Sensor(BaseModel):
    """A placed instance of a sensor model.

    ``model`` is a shared reference: many sensors can point at the same
    :class:`SensorModel` object. ``surface_db_id`` is ``None`` when the sensor
    has no renderable surface attached.
    """

    model_config = ConfigDict(frozen=True)

    model: SensorModel
    name: str
    desc: str = ""
    location: Location
    surface_db_id: Optional[int] = None


class HistoricalData(BaseModel):
    """``count`` synchronised samples across one or more channels.

    Sample ``i`` has timestamp ``timestamps[i]`` and value ``values[ch][i]``
    for every channel ``ch``. Missing samples are stored as ``NaN``.
    """

    model_config = ConfigDict(frozen=True)

    count: int = Field(..., ge=0)
    timestamps: Tuple[datetime, ...] = ()
    values: Dict[ChannelID, Tuple[float, ...]] = Field(default_factory=dict)

    @field_validator("timestamps")
    @classmethod
    def _normalise_timestamps(cls, value: Tuple[datetime, ...]) -> Tuple[datetime, ...]:
        return tuple(ensure_utc(item) for item in value)

    @model_validator(mode="after")
    def _check_lengths(self) -> "HistoricalData":
        if len(self.timestamps) != self.count:
            raise ValueError(
                f"expected {self.count} timestamps, got {len(self.timestamps)}"
            )
        for channel_id, samples in self.values.items():
            if len(samples) != self.count:
                raise ValueError(
                    f"channel {channel_id!r} has {len(samples)} samples, expected {self.count}"
                )
        return self

    @classmethod
    def empty(cls) -> "HistoricalData":
        return cls(count=0)


class Timerange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _normalise(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _check_order(self) -> "Timerange":
        if self.start > self.end:
            raise ValueError("timerange start must not be after its end")
        return self

    def contains(self, instant: datetime) -> bool:
        return self.start <= ensure_utc(instant) <= self.end

    def clamp(self, instant: datetime) -> datetime:
        """Return ``instant`` moved to the nearest bound when outside the range."""
        instant = ensure_utc(instant)
        if instant < self.start:
            return self.start
        if instant > self.end:
            return self.end
        return instant
