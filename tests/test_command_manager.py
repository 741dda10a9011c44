from typing import Sequence

import pytest

from atcli.commands.command_manager import CommandManager
from atcli.model import CommandInterface, Event, EventType
from atcli.services.event_bus import EventBus


class Recorder(CommandInterface):
    def __init__(self, name: str, description: str = "records calls", fail: bool = False):
        self.name = name
        self.description = description
        self.fail = fail
        self.calls: list[list[str]] = []

    def run(self, args: Sequence[str]) -> None:
        self.calls.append(list(args))
        if self.fail:
            raise RuntimeError("boom")


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def logs(bus):
    received = []
    bus.subscribe(EventType.LOG_MESSAGE, lambda e: received.append(e.payload))
    return received


def test_plain_text_goes_to_atmodem(bus):
    manager = CommandManager(bus)
    modem = Recorder("atmodem")
    manager.register_command(modem)
    bus.publish(Event(EventType.COMMAND_SENT, "AT+CSQ"))
    assert modem.calls == [["AT+CSQ"]]


def test_slash_command_gets_split_arguments(bus):
    manager = CommandManager(bus)
    gps = Recorder("gps")
    manager.register_command(gps)
    manager.handle_request("/gps  close   now")
    assert gps.calls == [["close", "now"]]


def test_unknown_command_is_logged(bus, logs):
    manager = CommandManager(bus)
    manager.handle_request("/nosuch arg")
    assert logs == ["Unknown command: /nosuch"]


def test_failing_command_is_logged(bus, logs):
    manager = CommandManager(bus)
    manager.register_command(Recorder("bad", fail=True))
    manager.handle_request("/bad")
    assert logs == ["Error executing command: boom"]


def test_empty_slash_does_nothing(bus, logs):
    manager = CommandManager(bus)
    cmd = Recorder("x")
    manager.register_command(cmd)
    manager.handle_request("/   ")
    assert logs == []
    assert cmd.calls == []


def test_list_commands_and_replacement(bus):
    manager = CommandManager(bus)
    manager.register_command(Recorder("help", "first"))
    manager.register_command(Recorder("quit", "leave"))
    manager.register_command(Recorder("help", "second"))
    listed = {c.name: c.description for c in manager.list_commands()}
    assert listed == {"help": "second", "quit": "leave"}


def test_registered_run_calls_object(bus):
    manager = CommandManager(bus)
    cmd = Recorder("signal")
    manager.register_command(cmd)
    (entry,) = manager.list_commands()
    entry.run(["a"])
    assert cmd.calls == [["a"]]


def test_plain_text_without_atmodem_registered_is_unknown(bus, logs):
    manager = CommandManager(bus)
    manager.handle_request("ATI")
    assert logs == ["Unknown command: /atmodem"]