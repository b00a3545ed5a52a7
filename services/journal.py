"""Bounded record of data view events, for consumers that poll over HTTP."""

from __future__ import annotations

import itertools
from collections import deque
from datetime import datetime, timezone
from functools import lru_cache, partial
from typing import Any, Deque, Dict, List, Optional

from pydantic import BaseModel

from models.events import DataViewEvent, HistoricalDataChanged, SensorsChanged
from services.consumer import DataViewConsumer
from services.event_bus import Listener
from settings import get_settings


class JournalEntry(BaseModel):
    sequence: int
    event_type: DataViewEvent
    recorded_at: datetime
    payload: Any = None


def _describe_payload(payload: Any) -> Any:
    # Bulk payloads are reduced to identifiers; readers re-pull the accessors.
    if isinstance(payload, SensorsChanged):
        return {"sensor_ids": sorted(payload.sensors)}
    if isinstance(payload, HistoricalDataChanged):
        return {"counts": {key: data.count for key, data in payload.historical_data.items()}}
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    if payload is None or isinstance(payload, (dict, list, str, int, float, bool)):
        return payload
    return str(payload)


class EventJournal(DataViewConsumer):
    """Records every event of the current data view, newest last."""

    def __init__(self, max_entries: int = 500) -> None:
        super().__init__()
        self._entries: Deque[JournalEntry] = deque(maxlen=max_entries)
        self._sequence = itertools.count(1)
        self._handlers: Dict[DataViewEvent, Listener] = {
            event_type: partial(self._record, event_type) for event_type in DataViewEvent
        }

    def event_handlers(self) -> Dict[DataViewEvent, Listener]:
        return self._handlers

    def entries(self, after: Optional[int] = None) -> List[JournalEntry]:
        if after is None:
            return list(self._entries)
        return [entry for entry in self._entries if entry.sequence > after]

    def latest_sequence(self) -> int:
        return self._entries[-1].sequence if self._entries else 0

    def _record(self, event_type: DataViewEvent, payload: Any) -> None:
        self._entries.append(
            JournalEntry(
                sequence=next(self._sequence),
                event_type=event_type,
                recorded_at=datetime.now(timezone.utc),
                payload=_describe_payload(payload),
            )
        )


@lru_cache
def build_default_journal(max_entries: Optional[int] = None) -> EventJournal:
    settings = get_settings()
    return EventJournal(max_entries=max_entries or settings.journal_size)
