"""Row-level records produced while reading sensor files."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict


@dataclass(slots=True)
class SensorSample:
    """One synchronised sample of a sensor, parsed from a readings row."""

    sensor_id: str
    timestamp: datetime
    values: Dict[str, float] = field(default_factory=dict)
