"""Data view refreshed from a dataset description and a readings file."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from models.entities import HistoricalData, SensorID, Timerange
from services.event_bus import EventBus
from services.loader import DatasetError, ReadingError, Readings, load_dataset, load_readings
from services.memory_view import InMemoryDataView
from settings import get_settings

logger = logging.getLogger(__name__)


def _restrict(data: HistoricalData, timerange: Timerange) -> HistoricalData:
    keep = [index for index, stamp in enumerate(data.timestamps) if timerange.contains(stamp)]
    if len(keep) == data.count:
        return data
    return HistoricalData(
        count=len(keep),
        timestamps=tuple(data.timestamps[index] for index in keep),
        values={
            channel_id: tuple(samples[index] for index in keep)
            for channel_id, samples in data.values.items()
        },
    )


class FileDataView(InMemoryDataView):
    """Backend that reloads its state from disk on :meth:`refresh`.

    A refresh that fails to read its files leaves the previous sensors and
    samples in place and triggers ``error`` instead of raising. A successful
    refresh applies all of its state before any listener runs; listener
    failures surface afterwards as :class:`EventDispatchError`.
    """

    def __init__(
        self,
        dataset_path: Path,
        readings_path: Optional[Path] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        super().__init__(event_bus=event_bus)
        self.dataset_path = dataset_path
        self.readings_path = readings_path
        self._row_errors: List[ReadingError] = []

    @property
    def row_errors(self) -> List[ReadingError]:
        return list(self._row_errors)

    def refresh(self) -> List[ReadingError]:
        """Reload both files and publish the changes as events."""
        try:
            dataset = load_dataset(self.dataset_path)
            if self.readings_path is not None:
                readings = load_readings(self.readings_path, dataset.sensors)
            else:
                readings = Readings()
        except (OSError, ValueError) as exc:
            reason = "dataset" if isinstance(exc, DatasetError) else type(exc).__name__
            self.report_error(f"Refresh from {self.dataset_path} failed: {exc}", reason=reason)
            return self.row_errors

        timerange = dataset.timerange or readings.timerange() or self.get_timerange()
        historical: Dict[SensorID, HistoricalData] = {
            sensor_id: _restrict(data, timerange)
            for sensor_id, data in readings.historical_data.items()
        }

        pending = self._apply_sensors(dataset.sensors)
        pending.extend(self._apply_timerange(timerange))
        pending.extend(self._apply_historical_data(historical))
        if self.get_current_sensor_id() is None and dataset.sensors:
            pending.extend(self._apply_current_sensor(next(iter(dataset.sensors))))
        self._row_errors = list(readings.errors)
        logger.info(
            "Refreshed data view with %d sensor(s)",
            len(dataset.sensors),
            extra={"path": str(self.dataset_path), "error_count": len(readings.errors)},
        )

        self._dispatch(pending)
        return self.row_errors


@lru_cache
def build_default_view(
    dataset_path: Optional[str] = None,
    readings_path: Optional[str] = None,
) -> FileDataView:
    """Factory that wires a file-backed view from settings."""
    settings = get_settings()
    dataset = settings.dataset_path if dataset_path is None else dataset_path
    readings = settings.readings_path if readings_path is None else readings_path
    if not dataset:
        raise DatasetError("No dataset path configured (set SENSOR_DATASET_PATH).")
    return FileDataView(
        dataset_path=Path(dataset),
        readings_path=Path(readings) if readings else None,
        event_bus=EventBus(raise_listener_errors=settings.raise_listener_errors),
    )
