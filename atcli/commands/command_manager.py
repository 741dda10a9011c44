"""Dispatch typed input to registered slash commands."""

from __future__ import annotations

from atcli.model import Command, CommandInterface, Event, EventType
from atcli.services.event_bus import EventBus

_DEFAULT_COMMAND = "atmodem"


class CommandManager:
    """Holds the slash commands and runs the one each sent line names.

    Input that does not start with ``/`` is sent to the modem as an AT command.
    """

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus
        self._commands: dict[str, Command] = {}
        event_bus.subscribe(EventType.COMMAND_SENT, self._on_command_sent)

    def register_command(self, command: CommandInterface) -> None:
        """Register ``command`` under its name, replacing any earlier one of that name."""
        entry = Command(name=command.name, description=command.description, run=command.run)
        self._commands[entry.name] = entry

    def handle_request(self, request: str) -> None:
        """Run the command named by ``request``; plain text goes to the modem."""
        if not request.startswith("/"):
            request = f"/{_DEFAULT_COMMAND} {request}"
        name, *args = request[1:].split() or [""]
        if not name:
            return
        command = self._commands.get(name)
        if command is None:
            self._log(f"Unknown command: /{name}")
            return
        try:
            command.run(args)
        except Exception as exc:  # a failing command must not take down the UI
            self._log(f"Error executing command: {exc}")

    def list_commands(self) -> list[Command]:
        """Return every registered command."""
        return list(self._commands.values())

    def _on_command_sent(self, event: Event) -> None:
        if isinstance(event.payload, str):
            self.handle_request(event.payload)

    def _log(self, message: str) -> None:
        self._bus.publish(Event(EventType.LOG_MESSAGE, message))