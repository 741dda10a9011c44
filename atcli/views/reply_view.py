"""A scrolling panel that shows what the modem replied."""

from __future__ import annotations

from typing import Optional

import urwid

from atcli.model import Event, EventType, View
from atcli.services.event_bus import EventBus
from atcli.views.view_manager import _focus_input_unless_navigation, _KeyCapture, _TextLog


class ReplyView(View):
    """Lists numbered serial responses and serial errors."""

    name = "reply"

    def __init__(self, event_bus: EventBus, title: str = "Modem Replies") -> None:
        self._bus = event_bus
        self.line_number = 0
        self._log = _TextLog()
        self.widget = _KeyCapture(urwid.LineBox(self._log.listbox, title=title), self.handle_key)
        event_bus.subscribe(EventType.SERIAL_ERROR, self.serial_error)
        event_bus.subscribe(EventType.SERIAL_RESPONSE, self.serial_response)

    @property
    def text(self) -> str:
        """Everything shown so far, tags included."""
        return self._log.text

    def handle_key(self, key: str) -> Optional[str]:
        """Keep scrolling keys here; any other key sends focus to the input field."""
        return _focus_input_unless_navigation(self._bus, key)

    def append(self, text: str) -> None:
        """Add ``text`` at the end, scroll to it and count one more reply."""
        self._log.write(text)
        self._log.scroll_to_end()
        self.line_number += 1
        self._bus.publish(Event(EventType.APP_REDRAW))

    def serial_error(self, event: Event) -> None:
        """Show a serial error in red."""
        self.append(f"[red]Serial read error: {event.payload}\n")

    def serial_response(self, event: Event) -> None:
        """Show a non-empty response line prefixed with its number."""
        if not isinstance(event.payload, str):
            return
        clean = event.payload.rstrip("\r\n")
        if clean:
            self.append(f"[{self.line_number}] <- {clean}\n")