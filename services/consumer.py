"""Base for components that follow a replaceable data view."""

from __future__ import annotations

from typing import Dict, Optional

from models.events import DataViewEvent
from services.data_view import DataView
from services.event_bus import Listener


class DataViewConsumer:
    """Holds a ``data_view`` reference and keeps its subscriptions on it.

    Assigning a new view calls :meth:`on_data_view_changed` with the old and
    new values before the reference is stored. The default implementation
    moves every handler returned by :meth:`event_handlers` from the old view
    to the new one.
    """

    def __init__(self) -> None:
        self._data_view: Optional[DataView] = None

    @property
    def data_view(self) -> Optional[DataView]:
        return self._data_view

    @data_view.setter
    def data_view(self, value: Optional[DataView]) -> None:
        self.on_data_view_changed(self._data_view, value)
        self._data_view = value

    def event_handlers(self) -> Dict[DataViewEvent, Listener]:
        """Handlers to keep subscribed; must return the same callables every time."""
        return {}

    def on_data_view_changed(
        self, old_view: Optional[DataView], new_view: Optional[DataView]
    ) -> None:
        if old_view is new_view:
            return
        handlers = self.event_handlers()
        if old_view is not None:
            for event_type, handler in handlers.items():
                old_view.remove_event_listener(event_type, handler)
        if new_view is not None:
            for event_type, handler in handlers.items():
                new_view.add_event_listener(event_type, handler)
