"""Checks for the relations a data view must keep between its accessors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from services.data_view import DataView


@dataclass(frozen=True)
class ConsistencyIssue:
    code: str
    detail: str
    sensor_id: Optional[str] = None


class ConsistencyError(AssertionError):
    """A data view exposed state that breaks its own contract."""

    def __init__(self, issues: List[ConsistencyIssue]) -> None:
        self.issues = list(issues)
        summary = "; ".join(issue.detail for issue in self.issues)
        super().__init__(f"data view is inconsistent: {summary}")


def check_consistency(view: DataView) -> List[ConsistencyIssue]:
    """Return every contract violation visible through the accessors."""
    issues: List[ConsistencyIssue] = []

    timerange = view.get_timerange()
    current_time = view.get_current_time()
    if not timerange.contains(current_time):
        issues.append(
            ConsistencyIssue(
                code="current-time-outside-timerange",
                detail=(
                    f"current time {current_time.isoformat()} is outside "
                    f"{timerange.start.isoformat()}..{timerange.end.isoformat()}"
                ),
            )
        )

    sensors = view.get_sensors()
    for sensor_id in view.get_historical_data():
        if sensor_id not in sensors:
            issues.append(
                ConsistencyIssue(
                    code="historical-data-unknown-sensor",
                    detail=f"historical data references unknown sensor {sensor_id!r}",
                    sensor_id=sensor_id,
                )
            )

    current_sensor = view.get_current_sensor_id()
    current_channel = view.get_current_channel_id()
    if current_sensor is None:
        if current_channel is not None:
            issues.append(
                ConsistencyIssue(
                    code="channel-without-sensor",
                    detail=f"channel {current_channel!r} selected without a current sensor",
                )
            )
        return issues

    sensor = sensors.get(current_sensor)
    if sensor is None:
        issues.append(
            ConsistencyIssue(
                code="current-sensor-unknown",
                detail=f"current sensor {current_sensor!r} is not among the sensors",
                sensor_id=current_sensor,
            )
        )
    elif current_channel is not None and current_channel not in sensor.model.channels:
        issues.append(
            ConsistencyIssue(
                code="current-channel-unknown",
                detail=(
                    f"channel {current_channel!r} is not provided by model "
                    f"{sensor.model.name!r}"
                ),
                sensor_id=current_sensor,
            )
        )
    return issues


def assert_consistent(view: DataView) -> None:
    issues = check_consistency(view)
    if issues:
        raise ConsistencyError(issues)
