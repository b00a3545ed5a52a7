"""Parsing of dataset descriptions and sensor readings files."""

from __future__ import annotations

import csv
import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TextIO

from pydantic import BaseModel, Field, ValidationError

from models.entities import (
    HistoricalData,
    Location,
    ModelID,
    Sensor,
    SensorID,
    SensorModel,
    Timerange,
)
from models.records import SensorSample

logger = logging.getLogger(__name__)

_SENSOR_COLUMN = "sensor_id"
_TIMESTAMP_COLUMN = "timestamp"


class DatasetError(ValueError):
    """A dataset or readings file cannot be used at all."""


class ReadingError(BaseModel):
    """Details about a readings row that was skipped."""

    row_number: int = Field(..., ge=1)
    reason: str


class _SensorEntry(BaseModel):
    model: ModelID
    name: str
    desc: str = ""
    location: Location
    surface_db_id: Optional[int] = None


class _DatasetFile(BaseModel):
    models: Dict[ModelID, SensorModel] = Field(default_factory=dict)
    sensors: Dict[SensorID, _SensorEntry] = Field(default_factory=dict)
    timerange: Optional[Timerange] = None


@dataclass
class Dataset:
    models: Dict[ModelID, SensorModel]
    sensors: Dict[SensorID, Sensor]
    timerange: Optional[Timerange] = None


@dataclass
class Readings:
    historical_data: Dict[SensorID, HistoricalData] = field(default_factory=dict)
    errors: List[ReadingError] = field(default_factory=list)
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None

    def timerange(self) -> Optional[Timerange]:
        if self.earliest is None or self.latest is None:
            return None
        return Timerange(start=self.earliest, end=self.latest)


def parse_dataset(payload: dict) -> Dataset:
    """Resolve a dataset document so sensors share their model objects."""
    try:
        document = _DatasetFile.model_validate(payload)
    except ValidationError as exc:
        raise DatasetError(f"Invalid dataset: {exc}") from exc

    sensors: Dict[SensorID, Sensor] = {}
    for sensor_id, entry in document.sensors.items():
        model = document.models.get(entry.model)
        if model is None:
            raise DatasetError(
                f"Sensor {sensor_id!r} references unknown model {entry.model!r}."
            )
        sensors[sensor_id] = Sensor(
            model=model,
            name=entry.name,
            desc=entry.desc,
            location=entry.location,
            surface_db_id=entry.surface_db_id,
        )
    return Dataset(models=dict(document.models), sensors=sensors, timerange=document.timerange)


def load_dataset(path: Path) -> Dataset:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DatasetError(f"Dataset file {path} is not valid JSON: {exc.msg}") from exc
    if not isinstance(raw, dict):
        raise DatasetError(f"Dataset file {path} must contain a JSON object.")
    return parse_dataset(raw)


def parse_timestamp(value: str) -> datetime:
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def parse_readings(
    stream: TextIO,
    sensors: Dict[SensorID, Sensor],
    source: str = "<stream>",
) -> Readings:
    """Read wide-format samples: ``sensor_id,timestamp,<channel>...``.

    Rows that cannot be used are recorded as :class:`ReadingError` and
    skipped. Empty cells are kept as ``NaN`` so every channel stays aligned
    with the timestamps.
    """
    reader = csv.DictReader(stream)
    if not reader.fieldnames:
        raise DatasetError("Readings file is missing a header row.")

    normalized = {name.lower().strip(): name for name in reader.fieldnames}
    required = {_SENSOR_COLUMN, _TIMESTAMP_COLUMN}
    missing = sorted(required - normalized.keys())
    if missing:
        raise DatasetError(f"Readings missing required columns: {', '.join(missing)}")

    sensor_col = normalized.pop(_SENSOR_COLUMN)
    timestamp_col = normalized.pop(_TIMESTAMP_COLUMN)
    channel_cols = {column.strip(): column for column in normalized.values()}

    result = Readings()
    samples: Dict[SensorID, List[SensorSample]] = {}

    def skip(row_number: int, reason: str) -> None:
        result.errors.append(ReadingError(row_number=row_number, reason=reason))
        logger.warning(
            "Skipping row %s: %s",
            row_number,
            reason,
            extra={"path": source, "row_number": row_number, "reason": reason},
        )

    for row_number, row in enumerate(reader, start=2):
        sensor_raw = (row.get(sensor_col) or "").strip()
        timestamp_raw = (row.get(timestamp_col) or "").strip()

        if not sensor_raw:
            skip(row_number, "missing sensor_id")
            continue

        sensor = sensors.get(sensor_raw)
        if sensor is None:
            skip(row_number, "unknown sensor_id")
            continue

        if not timestamp_raw:
            skip(row_number, "missing timestamp")
            continue

        try:
            timestamp = parse_timestamp(timestamp_raw)
        except ValueError:
            skip(row_number, "invalid timestamp")
            continue

        values: Dict[str, float] = {}
        invalid = False
        for channel_id, column in channel_cols.items():
            if channel_id not in sensor.model.channels:
                continue
            cell = (row.get(column) or "").strip()
            if not cell:
                values[channel_id] = math.nan
                continue
            try:
                values[channel_id] = float(cell)
            except ValueError:
                invalid = True
                break
        if invalid:
            skip(row_number, "invalid numeric value")
            continue

        samples.setdefault(sensor_raw, []).append(
            SensorSample(sensor_id=sensor_raw, timestamp=timestamp, values=values)
        )
        if result.earliest is None or timestamp < result.earliest:
            result.earliest = timestamp
        if result.latest is None or timestamp > result.latest:
            result.latest = timestamp

    for sensor_id, sensor_samples in samples.items():
        channels = [
            channel_id
            for channel_id in channel_cols
            if channel_id in sensors[sensor_id].model.channels
        ]
        result.historical_data[sensor_id] = build_historical_data(sensor_samples, channels)
    return result


def build_historical_data(samples: Iterable[SensorSample], channels: List[str]) -> HistoricalData:
    ordered = sorted(samples, key=lambda sample: sample.timestamp)
    return HistoricalData(
        count=len(ordered),
        timestamps=tuple(sample.timestamp for sample in ordered),
        values={
            channel_id: tuple(sample.values.get(channel_id, math.nan) for sample in ordered)
            for channel_id in channels
        },
    )


def load_readings(path: Path, sensors: Dict[SensorID, Sensor]) -> Readings:
    with path.open("r", encoding="utf-8", newline="") as handle:
        return parse_readings(handle, sensors, source=str(path))
