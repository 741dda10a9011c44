"""A scrolling panel listing sent commands, with history recall."""

from __future__ import annotations

from typing import Optional

import urwid

from atcli.model import Event, EventType, HistoryItem, View
from atcli.services.event_bus import EventBus
from atcli.views.view_manager import _focus_input_unless_navigation, _KeyCapture, _TextLog


class CommandView(View):
    """Shows every sent command and steps through them on history events."""

    name = "command"

    def __init__(self, event_bus: EventBus, title: str = "Sent Commands") -> None:
        self._bus = event_bus
        self.history: list[HistoryItem] = []
        self.history_index = -1
        self._log = _TextLog()
        self.widget = _KeyCapture(urwid.LineBox(self._log.listbox, title=title), self.handle_key)
        event_bus.subscribe(EventType.COMMAND_SENT, self._on_command_sent)
        event_bus.subscribe(EventType.COMMAND_HISTORY, self._on_command_history)

    @property
    def text(self) -> str:
        """Every command shown so far, one per line."""
        return self._log.text

    @property
    def highlighted(self) -> Optional[int]:
        """Line index of the recalled command, or None."""
        return self._log.highlighted

    def handle_key(self, key: str) -> Optional[str]:
        """Keep scrolling keys here; any other key sends focus to the input field."""
        return _focus_input_unless_navigation(self._bus, key)

    def _on_command_sent(self, event: Event) -> None:
        if not isinstance(event.payload, str):
            return
        line = self._log.text.count("\n")
        self.history.append(HistoryItem(event.payload, line))
        self.history_index = -1
        self._log.highlight(None)
        self._log.write(event.payload + "\n")
        self._log.scroll_to_end()
        self._bus.publish(Event(EventType.APP_REDRAW))

    def _on_command_history(self, event: Event) -> None:
        direction = event.payload
        if not isinstance(direction, int) or isinstance(direction, bool):
            return
        if direction < 0:
            if not self.history:
                return
            if self.history_index < len(self.history) - 1:
                self.history_index += 1
            self._recall()
        elif direction > 0:
            if self.history_index > 0:
                self.history_index -= 1
                self._recall()
            elif self.history_index == 0:
                self._log.highlight(None)
                self.history_index = -1
                self._bus.publish(Event(EventType.INPUT_SET_COMMAND, ""))

    def _recall(self) -> None:
        item = self.history[-1 - self.history_index]
        self._bus.publish(Event(EventType.INPUT_SET_COMMAND, item.cmd))
        self._log.highlight(item.index)
        self._bus.publish(Event(EventType.APP_REDRAW))