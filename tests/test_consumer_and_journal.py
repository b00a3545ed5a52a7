from __future__ import annotations

from typing import Any, Dict, List

from models.events import DataViewEvent
from services.consumer import DataViewConsumer
from services.event_bus import Listener
from services.journal import EventJournal
from services.memory_view import InMemoryDataView


class CountingConsumer(DataViewConsumer):
    def __init__(self) -> None:
        super().__init__()
        self.received: List[Any] = []
        self.swaps: List[tuple] = []

    def event_handlers(self) -> Dict[DataViewEvent, Listener]:
        return {DataViewEvent.SENSORS_CHANGED: self.on_sensors_changed}

    def on_sensors_changed(self, data: Any) -> None:
        self.received.append(data)

    def on_data_view_changed(self, old_view, new_view) -> None:
        self.swaps.append((old_view, new_view))
        super().on_data_view_changed(old_view, new_view)


def test_assigning_view_moves_subscriptions(sensors) -> None:
    first = InMemoryDataView()
    second = InMemoryDataView()
    consumer = CountingConsumer()

    consumer.data_view = first
    first.set_sensors(sensors)
    assert len(consumer.received) == 1

    consumer.data_view = second
    assert consumer.swaps == [(None, first), (first, second)]
    assert consumer.data_view is second
    assert first.events.listener_count(DataViewEvent.SENSORS_CHANGED) == 0

    first.set_sensors({})
    second.set_sensors(sensors)
    assert len(consumer.received) == 2

    consumer.data_view = None
    assert second.events.listener_count(DataViewEvent.SENSORS_CHANGED) == 0


def test_reassigning_same_view_keeps_single_subscription(sensors) -> None:
    view = InMemoryDataView()
    consumer = CountingConsumer()

    consumer.data_view = view
    consumer.data_view = view
    view.set_sensors(sensors)

    assert view.events.listener_count(DataViewEvent.SENSORS_CHANGED) == 1
    assert len(consumer.received) == 1


def test_journal_records_events_in_order(sensors) -> None:
    view = InMemoryDataView()
    journal = EventJournal(max_entries=10)
    journal.data_view = view

    view.set_sensors(sensors)
    view.set_current_sensor("s3")
    view.report_error("fetch failed", reason="timeout")

    entries = journal.entries()
    assert [entry.event_type for entry in entries] == [
        DataViewEvent.SENSORS_CHANGED,
        DataViewEvent.CURRENT_SENSOR_CHANGED,
        DataViewEvent.CURRENT_CHANNEL_CHANGED,
        DataViewEvent.ERROR,
    ]
    assert [entry.sequence for entry in entries] == [1, 2, 3, 4]
    assert entries[0].payload == {"sensor_ids": ["s1", "s2", "s3"]}
    assert entries[1].payload == {"sensor_id": "s3"}
    assert entries[3].payload["message"] == "fetch failed"
    assert journal.latest_sequence() == 4
    assert [entry.sequence for entry in journal.entries(after=2)] == [3, 4]


def test_journal_is_bounded_and_detaches() -> None:
    view = InMemoryDataView()
    journal = EventJournal(max_entries=2)
    journal.data_view = view

    for index in range(5):
        view.trigger_event(DataViewEvent.ERROR, {"attempt": index})

    assert [entry.payload for entry in journal.entries()] == [{"attempt": 3}, {"attempt": 4}]

    journal.data_view = None
    view.trigger_event(DataViewEvent.ERROR, {"attempt": 5})
    assert journal.latest_sequence() == 5
