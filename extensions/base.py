from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from extensions.host import Button, ButtonState, ControlFactory, ControlGroup, Viewer
from services.consumer import DataViewConsumer

logger = logging.getLogger(__name__)

TOOLBAR_GROUP_ID = "iot-toolbar"
DATA_VISUALIZATION_EXTENSION = "Autodesk.DataVisualization"


class BaseExtension(DataViewConsumer):
    """Viewer extension that shows a toggle button in the shared IoT toolbar.

    Subclasses call :meth:`_create_toolbar_ui` once the host toolbar exists
    and react to data view swaps through ``event_handlers`` or by overriding
    ``on_data_view_changed``.
    """

    def __init__(
        self,
        viewer: Viewer,
        controls: ControlFactory,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__()
        self.viewer = viewer
        self.controls = controls
        self.options = dict(options or {})
        self.active = False
        self._data_viz_ext: Any = None
        self._group: Optional[ControlGroup] = None
        self._button: Optional[Button] = None

    @property
    def data_visualization(self) -> Any:
        return self._data_viz_ext

    async def load(self) -> bool:
        self._data_viz_ext = await self.viewer.load_extension(DATA_VISUALIZATION_EXTENSION)
        logger.debug("Extension loaded: %s", type(self).__name__)
        return True

    def unload(self) -> bool:
        self._data_viz_ext = None
        self._remove_toolbar_ui()
        logger.debug("Extension unloaded: %s", type(self).__name__)
        return True

    def activate(self) -> bool:
        if self._button is not None:
            self._button.set_state(ButtonState.ACTIVE)
        self.active = True
        return True

    def deactivate(self) -> bool:
        if self._button is not None:
            self._button.set_state(ButtonState.INACTIVE)
        self.active = False
        return True

    def is_active(self) -> bool:
        return self.active

    def set_active(self, active: bool) -> bool:
        return self.activate() if active else self.deactivate()

    def _create_toolbar_ui(self, button_id: str, button_tooltip: str, button_icon_url: str) -> None:
        group = self.viewer.toolbar.get_control(TOOLBAR_GROUP_ID)
        if group is None:
            group = self.controls.create_group(TOOLBAR_GROUP_ID)
            self.viewer.toolbar.add_control(group)
        self._group = group

        button = self.controls.create_button(button_id)
        button.on_click = lambda _event: self.set_active(not self.is_active())
        button.set_icon(button_icon_url)
        button.set_tool_tip(button_tooltip)
        group.add_control(button)
        self._button = button

    def _remove_toolbar_ui(self) -> None:
        if self._group is None:
            return
        if self._button is not None:
            self._group.remove_control(self._button)
        if self._group.get_number_of_controls() == 0:
            self.viewer.toolbar.remove_control(self._group)
        self._button = None
        self._group = None
