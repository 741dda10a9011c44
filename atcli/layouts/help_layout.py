"""A pop-up screen listing the available commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

import urwid

from atcli.model import Command, Event, EventType, Layout
from atcli.services.event_bus import EventBus
from atcli.services.log_service import log_message
from atcli.views.view_manager import _KeyCapture, _markup

if TYPE_CHECKING:
    from atcli.commands.command_manager import CommandManager

VERSION = "0.1"

_BUTTON_ROWS = 1
_PADDING_ROWS = 2
_MARGIN_ROWS = 10


def help_text(commands: Iterable[Command]) -> str:
    """Build the help message listing ``commands`` as ``/name - description`` lines."""
    text = f"atcli - version {VERSION}"
    text += "A modern AT command terminal.\n\n"
    text += "Available commands:\n"
    text += "".join(f"/{command.name} - {command.description}\n" for command in commands)
    return text


class HelpLayout(Layout):
    """A centred dialog with the help text; Close or Escape returns to the home screen."""

    name = "help"

    def __init__(self, event_bus: EventBus, command_manager: CommandManager) -> None:
        self._bus = event_bus
        self.text = help_text(command_manager.list_commands())
        lines = self.text.count("\n") + 1
        self.modal_height = lines + _BUTTON_ROWS + _PADDING_ROWS + _MARGIN_ROWS

        button = urwid.Button("Close", on_press=lambda _button: self._return_home())
        body = urwid.Pile(
            [
                urwid.Text(_markup(self.text), align="center"),
                urwid.Divider(),
                urwid.Padding(button, align="center", width=len("< Close >")),
            ]
        )
        modal = urwid.LineBox(urwid.Filler(body, valign="middle"), title=" Help ")
        overlay = urwid.Overlay(
            modal,
            urwid.SolidFill(" "),
            align="center",
            width=("relative", 34),
            valign="middle",
            height=self.modal_height,
        )
        self.widget = _KeyCapture(overlay, self.handle_key)

        log_message("Showing popup")
        log_message(self.text)

    def on_layout_change(self) -> None:
        """Nothing on this screen depends on other views."""

    def handle_key(self, key: str) -> Optional[str]:
        """Escape closes the dialog; every other key goes on to it."""
        if key == "esc":
            self._return_home()
            return None
        return key

    def _return_home(self) -> None:
        self._bus.publish(Event(EventType.CHANGE_LAYOUT, "home"))