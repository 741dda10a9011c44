"""The built-in slash commands."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import TYPE_CHECKING, Sequence

from atcli.model import CommandInterface, Event, EventType
from atcli.services.event_bus import EventBus
from atcli.services.log_service import log_message

if TYPE_CHECKING:
    from atcli.commands.command_manager import CommandManager
    from atcli.views.log_view import LogView


class ATModemCommand(CommandInterface):
    """``/atmodem``: send the arguments, joined by spaces, to the modem."""

    name = "atmodem"
    description = "Send AT command to modem"

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus

    def run(self, args: Sequence[str]) -> None:
        self._bus.publish(Event(EventType.AT_MODEM_COMMAND, " ".join(args)))


class GPSCommand(CommandInterface):
    """``/gps``: show the GPS screen and start polling; ``/gps close`` undoes it."""

    name = "gps"
    description = "Show GPS location information"

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus

    def run(self, args: Sequence[str]) -> None:
        if args and args[0] == "close":
            self._bus.publish(Event(EventType.STOP_GPS))
            self._bus.publish(Event(EventType.CHANGE_LAYOUT, "home"))
            return
        self._bus.publish(Event(EventType.CHANGE_LAYOUT, "gps"))
        self._bus.publish(Event(EventType.START_GPS))


class HelpCommand(CommandInterface):
    """``/help``: show the help screen."""

    name = "help"
    description = "Show help and version information"

    def __init__(self, command_manager: CommandManager, event_bus: EventBus) -> None:
        self.command_manager = command_manager
        self._bus = event_bus

    def run(self, args: Sequence[str]) -> None:
        self._bus.publish(Event(EventType.CHANGE_LAYOUT, "help"))


class LogCommand(CommandInterface):
    """``/log`` toggles the log panel; ``/log off`` and ``/log close`` hide it."""

    name = "log"
    description = "Show error logging panel. Usage: /log, /log off, or /log close"

    def __init__(self, event_bus: EventBus, log_view: LogView) -> None:
        self._bus = event_bus
        self._log_view = log_view
        self.active = False
        self._lock = threading.Lock()

    def run(self, args: Sequence[str]) -> None:
        with self._lock:
            if args and args[0] in ("off", "close"):
                self.active = False
            else:
                self.active = not self.active
            self._log_view.visible = self.active
            self._bus.publish(Event(EventType.LAYOUT_CHANGE))
            state = "activated" if self.active else "deactivated"
            stamp = datetime.now().strftime("%H:%M:%S")
            log_message(f"[yellow]Logging {state} at {stamp}[white]")


class QuitCommand(CommandInterface):
    """``/quit``: shut the application down."""

    name = "quit"
    description = "Safely exit the application"

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus

    def run(self, args: Sequence[str]) -> None:
        self._bus.publish(Event(EventType.APP_SHUTDOWN))


class SignalCommand(CommandInterface):
    """``/signal``: show the signal chart and start polling; ``/signal close`` undoes it."""

    name = "signal"
    description = "Show signal strength chart"

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus

    def run(self, args: Sequence[str]) -> None:
        log_message("[blue]Signal command started[white]")
        if args and args[0] == "close":
            log_message("[blue]Closing signal view and returning to home[white]")
            self._bus.publish(Event(EventType.STOP_SIGNAL))
            self._bus.publish(Event(EventType.CHANGE_LAYOUT, "home"))
            return
        self._bus.publish(Event(EventType.CHANGE_LAYOUT, "signal"))
        self._bus.publish(Event(EventType.START_SIGNAL))