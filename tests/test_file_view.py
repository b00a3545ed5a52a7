from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from typing import Any, List, Tuple

import pytest

from models.events import DataViewError, DataViewEvent
from services.consistency import check_consistency
from services.event_bus import EventDispatchError
from services.file_view import FileDataView


def _record(view: FileDataView) -> List[Tuple[DataViewEvent, Any]]:
    events: List[Tuple[DataViewEvent, Any]] = []
    for event_type in DataViewEvent:
        view.add_event_listener(event_type, lambda data, kind=event_type: events.append((kind, data)))
    return events


def test_refresh_loads_files_and_selects_first_sensor(data_files) -> None:
    view = FileDataView(data_files["dataset"], data_files["readings"])
    events = _record(view)

    errors = view.refresh()

    assert errors == []
    assert set(view.get_sensors()) == {"s1", "s2", "s3"}
    assert set(view.get_historical_data()) == {"s1", "s2", "s3"}
    assert view.get_timerange().start == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
    assert view.get_timerange().end == datetime(2024, 1, 1, 0, 30, tzinfo=timezone.utc)
    assert view.get_current_time() == view.get_timerange().end
    assert view.get_current_sensor_id() == "s1"
    assert view.get_current_channel_id() == "temp"
    assert check_consistency(view) == []

    kinds = [kind for kind, _ in events]
    assert DataViewEvent.SENSORS_CHANGED in kinds
    assert DataViewEvent.HISTORICAL_DATA_CHANGED in kinds
    assert DataViewEvent.CURRENT_SENSOR_CHANGED in kinds
    assert DataViewEvent.ERROR not in kinds

    s1 = view.get_historical_data()["s1"]
    assert s1.values["temp"] == (20.5, 21.0)
    assert math.isnan(s1.values["hum"][0])
    assert view.get_historical_data()["s3"].values == {"co2": (650.0,)}


def test_failed_refresh_reports_error_and_keeps_state(data_files) -> None:
    view = FileDataView(data_files["dataset"], data_files["readings"])
    view.refresh()
    sensors_before = view.get_sensors()
    history_before = view.get_historical_data()
    events = _record(view)

    data_files["dataset"].write_text("{broken", encoding="utf-8")
    view.refresh()

    assert [kind for kind, _ in events] == [DataViewEvent.ERROR]
    payload = events[0][1]
    assert isinstance(payload, DataViewError)
    assert payload.reason == "dataset"
    assert "not valid JSON" in payload.message
    assert view.get_sensors() == sensors_before
    assert view.get_historical_data().keys() == history_before.keys()


def test_missing_file_reports_error(tmp_path) -> None:
    view = FileDataView(tmp_path / "absent.json")
    events = _record(view)

    view.refresh()

    assert len(events) == 1
    assert events[0][0] is DataViewEvent.ERROR
    assert events[0][1].reason == "FileNotFoundError"
    assert view.get_sensors() == {}


def test_refresh_drops_removed_sensors(data_files) -> None:
    view = FileDataView(data_files["dataset"], data_files["readings"])
    view.refresh()

    dataset = json.loads(data_files["dataset"].read_text(encoding="utf-8"))
    del dataset["sensors"]["s1"]
    data_files["dataset"].write_text(json.dumps(dataset), encoding="utf-8")
    view.refresh()

    assert "s1" not in view.get_sensors()
    assert "s1" not in view.get_historical_data()
    assert view.get_current_sensor_id() == "s2"
    assert check_consistency(view) == []


def test_dataset_timerange_limits_history(data_files) -> None:
    dataset = json.loads(data_files["dataset"].read_text(encoding="utf-8"))
    dataset["timerange"] = {"start": "2024-01-01T00:10:00Z", "end": "2024-01-01T00:20:00Z"}
    data_files["dataset"].write_text(json.dumps(dataset), encoding="utf-8")

    view = FileDataView(data_files["dataset"], data_files["readings"])
    view.refresh()

    history = view.get_historical_data()
    assert history["s1"].count == 1
    assert history["s1"].values["temp"] == (21.0,)
    assert history["s2"].count == 0
    assert view.get_timerange().contains(view.get_current_time())


def test_row_errors_are_returned(data_files) -> None:
    with data_files["readings"].open("a", encoding="utf-8") as handle:
        handle.write("s2,2024-01-01T00:05:00Z,bad,1,\n")

    view = FileDataView(data_files["dataset"], data_files["readings"])
    errors = view.refresh()

    assert [(error.row_number, error.reason) for error in errors] == [(6, "invalid numeric value")]
    assert view.row_errors == errors


def test_refresh_applies_everything_before_a_listener_fails(data_files) -> None:
    view = FileDataView(data_files["dataset"], data_files["readings"])
    seen_history: List[set] = []

    def failing(_data: Any) -> None:
        seen_history.append(set(view.get_historical_data()))
        raise RuntimeError("listener bug")

    view.add_event_listener(DataViewEvent.SENSORS_CHANGED, failing)
    events = _record(view)

    with pytest.raises(EventDispatchError):
        view.refresh()

    assert seen_history == [{"s1", "s2", "s3"}]
    assert set(view.get_historical_data()) == {"s1", "s2", "s3"}
    assert view.get_timerange().end == datetime(2024, 1, 1, 0, 30, tzinfo=timezone.utc)
    assert view.get_current_sensor_id() == "s1"
    assert view.row_errors == []
    assert check_consistency(view) == []

    kinds = [kind for kind, _ in events]
    assert DataViewEvent.HISTORICAL_DATA_CHANGED in kinds
    assert DataViewEvent.CURRENT_SENSOR_CHANGED in kinds
    assert DataViewEvent.ERROR not in kinds
