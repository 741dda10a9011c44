"""The one-line field where commands are typed."""

from __future__ import annotations

from typing import Optional

import urwid

from atcli.model import Event, EventType, View
from atcli.services.event_bus import EventBus
from atcli.views.view_manager import _KeyCapture


class InputField(View):
    """Publishes typed commands and asks for history on the arrow keys."""

    name = "input"

    def __init__(self, event_bus: EventBus, label: str = "Command: ") -> None:
        self._bus = event_bus
        self._edit = urwid.Edit(caption=label)
        self.widget = _KeyCapture(urwid.AttrMap(self._edit, "input"), self.handle_key)
        event_bus.subscribe(EventType.FOCUS_INPUT, self._on_focus_input)
        event_bus.subscribe(EventType.INPUT_SET_COMMAND, self._on_set_command)

    @property
    def text(self) -> str:
        """What is typed in the field."""
        return self._edit.edit_text

    def submit(self) -> None:
        """Clear the field and publish its text as a sent command, unless it was empty."""
        user_input = self._edit.edit_text
        self._edit.set_edit_text("")
        if user_input:
            self._bus.publish(Event(EventType.COMMAND_SENT, user_input))

    def handle_key(self, key: str) -> Optional[str]:
        """Enter submits; up and down ask for older and newer history entries."""
        if key == "enter":
            self.submit()
            return None
        if key == "up":
            self._bus.publish(Event(EventType.COMMAND_HISTORY, -1))
            return None
        if key == "down":
            self._bus.publish(Event(EventType.COMMAND_HISTORY, 1))
            return None
        return key

    def _on_focus_input(self, event: Event) -> None:
        self._bus.publish(Event(EventType.APP_FOCUS, self.widget))

    def _on_set_command(self, event: Event) -> None:
        if isinstance(event.payload, str):
            self._edit.set_edit_text(event.payload)
            self._edit.set_edit_pos(len(event.payload))