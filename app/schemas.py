"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.entities import HistoricalData
from services.aggregator import Aggregator
from services.journal import JournalEntry


class ChannelStats(BaseModel):
    """Aggregate metrics for one channel of a sensor's samples."""

    sample_count: int = Field(..., ge=0)
    missing_count: int = Field(0, ge=0)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    mean_value: Optional[float] = None


class HistoricalDataOut(BaseModel):
    """Historical samples of one sensor; missing samples are ``null``."""

    count: int = Field(..., ge=0)
    timestamps: List[datetime] = Field(default_factory=list)
    values: Dict[str, List[Optional[float]]] = Field(default_factory=dict)
    stats: Dict[str, ChannelStats] = Field(default_factory=dict)

    @classmethod
    def from_entity(cls, data: HistoricalData, aggregator: Aggregator) -> "HistoricalDataOut":
        summaries = aggregator.summarize(data)
        return cls(
            count=data.count,
            timestamps=list(data.timestamps),
            values={
                channel_id: [None if math.isnan(value) else value for value in samples]
                for channel_id, samples in data.values.items()
            },
            stats={
                channel_id: ChannelStats(
                    sample_count=summary.sample_count,
                    missing_count=summary.missing_count,
                    min_value=summary.min_value,
                    max_value=summary.max_value,
                    mean_value=summary.mean_value,
                )
                for channel_id, summary in summaries.items()
            },
        )


class CurrentSelection(BaseModel):
    current_time: datetime
    sensor_id: Optional[str] = None
    channel_id: Optional[str] = None


class TimeUpdate(BaseModel):
    current_time: datetime


class SensorSelection(BaseModel):
    sensor_id: Optional[str] = Field(None, description="Sensor to focus, or null to clear.")


class ChannelSelection(BaseModel):
    channel_id: Optional[str] = Field(None, description="Channel to focus, or null to clear.")


class RefreshAccepted(BaseModel):
    status: str = "accepted"


class EventsResponse(BaseModel):
    latest_sequence: int = Field(..., ge=0)
    entries: List[JournalEntry] = Field(default_factory=list)
