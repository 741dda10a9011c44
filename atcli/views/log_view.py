"""A scrolling panel that shows the application's log messages."""

from __future__ import annotations

import urwid

from atcli.model import Event, EventType, View
from atcli.services.event_bus import EventBus
from atcli.views.view_manager import _TextLog

_WELCOME = "Log view initialized. Use /log to toggle this view.\n"


class LogView(View):
    """Appends every ``LOG_MESSAGE`` to a bordered panel; ``visible`` says whether layouts show it."""

    name = "log"

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus
        self.visible = False
        self._log = _TextLog(_WELCOME)
        self.widget = urwid.LineBox(self._log.listbox, title="Log Messages")
        event_bus.subscribe(EventType.LOG_MESSAGE, self._on_log_message)

    @property
    def text(self) -> str:
        """Everything logged so far, tags included."""
        return self._log.text

    def _on_log_message(self, event: Event) -> None:
        if not isinstance(event.payload, str):
            return
        self._log.write(event.payload + "\n")
        self._log.scroll_to_end()
        self._bus.publish(Event(EventType.APP_REDRAW))