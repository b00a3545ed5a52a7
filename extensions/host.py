"""Capabilities a viewer host provides to extensions.

Extensions receive these objects instead of reaching for a global viewer
runtime, so they can run against any host (or a test double) implementing
the protocols below.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional, Protocol


class ButtonState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISABLED = "disabled"


class Button(Protocol):
    button_id: str
    on_click: Optional[Callable[[Any], None]]

    def set_state(self, state: ButtonState) -> None: ...

    def set_tool_tip(self, text: str) -> None: ...

    def set_icon(self, url: str) -> None: ...


class ControlGroup(Protocol):
    group_id: str

    def add_control(self, control: Button) -> None: ...

    def remove_control(self, control: Button) -> None: ...

    def get_number_of_controls(self) -> int: ...


class Toolbar(Protocol):
    def get_control(self, control_id: str) -> Optional[ControlGroup]: ...

    def add_control(self, group: ControlGroup) -> None: ...

    def remove_control(self, group: ControlGroup) -> None: ...


class ControlFactory(Protocol):
    def create_group(self, group_id: str) -> ControlGroup: ...

    def create_button(self, button_id: str) -> Button: ...


class Viewer(Protocol):
    toolbar: Toolbar

    async def load_extension(self, name: str) -> Any: ...
