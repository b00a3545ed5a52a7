from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

import pytest

from models.entities import Channel, HistoricalData, Location, Sensor, SensorModel, Timerange

T0 = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2024, 1, 1, 0, 15, tzinfo=timezone.utc)
T2 = datetime(2024, 1, 1, 0, 30, tzinfo=timezone.utc)

DATASET = {
    "models": {
        "env": {
            "name": "Environment",
            "desc": "Temperature and humidity",
            "channels": {
                "temp": {"name": "Temperature", "unit": "C", "min": 18.0, "max": 28.0},
                "hum": {"name": "Humidity", "unit": "%", "min": 20.0, "max": 80.0},
            },
        },
        "co2": {
            "name": "Air quality",
            "channels": {
                "co2": {"name": "CO2", "unit": "ppm", "min": 400.0, "max": 1600.0},
            },
        },
    },
    "sensors": {
        "s1": {"model": "env", "name": "Lobby", "location": {"x": 1.0, "y": 2.0, "z": 0.0}, "surface_db_id": 7},
        "s2": {"model": "env", "name": "Office", "location": {"x": -3.0, "y": 4.5, "z": 1.0}},
        "s3": {"model": "co2", "name": "Kitchen", "location": {"x": 0.0, "y": 0.0, "z": 0.0}},
    },
}

READINGS = """sensor_id,timestamp,temp,hum,co2
s1,2024-01-01T00:15:00Z,21.0,40.0,
s1,2024-01-01T00:00:00Z,20.5,,
s2,2024-01-01T00:30:00+00:00,22.0,35.0,
s3,2024-01-01T00:00:00Z,,,650
"""


@pytest.fixture()
def env_model() -> SensorModel:
    return SensorModel(
        name="Environment",
        channels={
            "temp": Channel(name="Temperature", unit="C", min=18.0, max=28.0),
            "hum": Channel(name="Humidity", unit="%", min=20.0, max=80.0),
        },
    )


@pytest.fixture()
def co2_model() -> SensorModel:
    return SensorModel(
        name="Air quality",
        channels={"co2": Channel(name="CO2", unit="ppm", min=400.0, max=1600.0)},
    )


@pytest.fixture()
def sensors(env_model: SensorModel, co2_model: SensorModel) -> Dict[str, Sensor]:
    return {
        "s1": Sensor(model=env_model, name="Lobby", location=Location(x=1, y=2, z=0), surface_db_id=7),
        "s2": Sensor(model=env_model, name="Office", location=Location(x=-3, y=4.5, z=1)),
        "s3": Sensor(model=co2_model, name="Kitchen", location=Location(x=0, y=0, z=0)),
    }


@pytest.fixture()
def timerange() -> Timerange:
    return Timerange(start=T0, end=T2)


@pytest.fixture()
def historical(sensors: Dict[str, Sensor]) -> Dict[str, HistoricalData]:
    return {
        "s1": HistoricalData(
            count=2,
            timestamps=(T0, T1),
            values={"temp": (20.5, 21.0), "hum": (41.0, 40.0)},
        ),
    }


@pytest.fixture()
def data_files(tmp_path: Path) -> Dict[str, Path]:
    dataset_path = tmp_path / "dataset.json"
    readings_path = tmp_path / "readings.csv"
    dataset_path.write_text(json.dumps(DATASET), encoding="utf-8")
    readings_path.write_text(READINGS, encoding="utf-8")
    return {"dataset": dataset_path, "readings": readings_path}
