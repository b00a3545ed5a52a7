"""Per-channel statistics over historical sensor data."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable

from models.entities import ChannelID, HistoricalData


@dataclass
class ChannelSummary:
    """Computed statistics for the samples of one channel."""

    sample_count: int = 0
    missing_count: int = 0
    min_value: float | None = None
    max_value: float | None = None
    mean_value: float | None = None


class Aggregator:
    """Pure aggregation component; ``NaN`` samples count as missing."""

    def summarize_channel(self, samples: Iterable[float]) -> ChannelSummary:
        summary = ChannelSummary()
        total = 0.0

        for value in samples:
            if math.isnan(value):
                summary.missing_count += 1
                continue
            summary.sample_count += 1
            total += value

            if summary.min_value is None or value < summary.min_value:
                summary.min_value = value
            if summary.max_value is None or value > summary.max_value:
                summary.max_value = value

        if summary.sample_count:
            summary.mean_value = total / summary.sample_count

        return summary

    def summarize(self, data: HistoricalData) -> Dict[ChannelID, ChannelSummary]:
        return {
            channel_id: self.summarize_channel(samples)
            for channel_id, samples in data.values.items()
        }
