"""Command-line entry point: parse options, wire the views together and run the terminal UI."""

from __future__ import annotations

import argparse
import os
import signal
import sys
import threading
from typing import Optional, Sequence

import urwid

from atcli.commands.builtin import (
    ATModemCommand,
    GPSCommand,
    HelpCommand,
    LogCommand,
    QuitCommand,
    SignalCommand,
)
from atcli.commands.command_manager import CommandManager
from atcli.layouts.help_layout import VERSION, HelpLayout
from atcli.layouts.layout_manager import LayoutManager
from atcli.layouts.panels import GPSLayout, HomeLayout, SignalChartLayout
from atcli.model import Event, EventType
from atcli.services.event_bus import EventBus
from atcli.services.log_service import init_log_service
from atcli.services.serial_port import SerialPort, SerialPortError
from atcli.views.command_view import CommandView
from atcli.views.gps_view import GPSView
from atcli.views.input_field import InputField
from atcli.views.log_view import LogView
from atcli.views.reply_view import ReplyView
from atcli.views.signal_chart import SignalChart
from atcli.views.status_bar import StatusBar
from atcli.views.view_manager import ViewManager

BUILD_TIME = "not set"
GIT_COMMIT = "not set"

DEFAULT_PORT = "/dev/serial0"
DEFAULT_BAUD = 115200

_PALETTE = [
    ("yellow", "yellow", ""),
    ("red", "light red", ""),
    ("green", "dark green", ""),
    ("blue", "light blue", ""),
    ("gray", "dark gray", ""),
    ("orange", "brown", ""),
    ("lime", "light green", ""),
    ("highlight", "black", "yellow"),
    ("input", "white", "dark blue"),
]

_REDRAW = b"r"
_QUIT = b"q"


def build_parser() -> argparse.ArgumentParser:
    """Return the parser for the command-line options."""
    parser = argparse.ArgumentParser(
        prog="atcli", description="AT Command Line Interface for serial modems."
    )
    parser.add_argument(
        "-version",
        "--version",
        dest="version",
        action="store_true",
        help="Print version information and exit",
    )
    parser.add_argument(
        "-port", "--port", dest="port", default=DEFAULT_PORT, help="Serial port to use"
    )
    parser.add_argument(
        "-baud", "--baud", dest="baud", type=int, default=DEFAULT_BAUD, help="Baud rate"
    )
    return parser


def version_text() -> str:
    """Return the text printed by ``--version``."""
    return (
        "ATCLI - AT Command Line Interface\n"
        f"Version: {VERSION}\n"
        f"Build Time: {BUILD_TIME}\n"
        f"Git Commit: {GIT_COMMIT}\n"
    )


class _LoopNotifier:
    """Wakes the UI loop from any thread to redraw or to quit."""

    def __init__(self, loop: urwid.MainLoop) -> None:
        self._loop = loop
        self._lock = threading.Lock()
        self._closed = False
        self._fd = loop.watch_pipe(self._on_wake)

    def redraw(self, event: Optional[Event] = None) -> None:
        self._send(_REDRAW)

    def shutdown(self, event: Optional[Event] = None) -> None:
        self._send(_QUIT)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._loop.remove_watch_pipe(self._fd)

    def _send(self, signal_byte: bytes) -> None:
        with self._lock:
            if self._closed:
                return
            try:
                os.write(self._fd, signal_byte)
            except OSError:
                pass

    def _on_wake(self, data: bytes) -> bool:
        if _QUIT in data:
            raise urwid.ExitMainLoop()
        self._loop.draw_screen()
        return True


def _focus(root: urwid.WidgetPlaceholder, target: object) -> None:
    """Move focus to ``target`` if the current screen holds it directly."""
    container = root.original_widget
    if not isinstance(container, (urwid.Pile, urwid.Columns)):
        return
    for position, (widget, _options) in enumerate(container.contents):
        if widget is target:
            container.focus_position = position
            return


def _run(bus: EventBus, port_name: str, baud_rate: int) -> int:
    views = ViewManager()
    layouts = LayoutManager(bus)

    views.register(InputField(bus, "Command: "))
    views.register(CommandView(bus, "Sent Commands"))
    views.register(ReplyView(bus, "Modem Replies"))
    views.register(SignalChart("Signal Strength", bus))
    views.register(GPSView("GPS Location", bus))
    log_view = LogView(bus)
    views.register(log_view)
    status_bar = StatusBar(bus)
    views.register(status_bar)
    status_bar.port_name = port_name
    status_bar.baud_rate = baud_rate

    commands = CommandManager(bus)
    commands.register_command(HelpCommand(commands, bus))
    commands.register_command(QuitCommand(bus))
    commands.register_command(ATModemCommand(bus))
    commands.register_command(SignalCommand(bus))
    commands.register_command(LogCommand(bus, log_view))
    commands.register_command(GPSCommand(bus))

    layouts.register(HomeLayout(views, bus), True)
    layouts.register(SignalChartLayout(views, bus), False)
    layouts.register(GPSLayout(views, bus), False)
    layouts.register(HelpLayout(bus, commands), False)

    try:
        serial_port = SerialPort(bus, port_name, baud_rate)
    except SerialPortError as exc:
        status_bar.close()
        reason = exc.__cause__ if exc.__cause__ is not None else exc
        print(f"Failed to open serial port {port_name}: {reason}", file=sys.stderr)
        return 1

    with serial_port:
        loop = urwid.MainLoop(layouts.widget, palette=_PALETTE, handle_mouse=True)
        notifier = _LoopNotifier(loop)
        bus.subscribe(EventType.APP_REDRAW, notifier.redraw)
        bus.subscribe(EventType.APP_FOCUS, lambda event: _focus(layouts.widget, event.payload))
        bus.subscribe(EventType.APP_SHUTDOWN, notifier.shutdown)

        previous_handler = signal.signal(signal.SIGTERM, lambda _sig, _frame: notifier.shutdown())
        try:
            loop.run()
        except KeyboardInterrupt:
            pass
        finally:
            signal.signal(signal.SIGTERM, previous_handler)
            bus.unsubscribe(EventType.APP_REDRAW, notifier.redraw)
            bus.unsubscribe(EventType.APP_SHUTDOWN, notifier.shutdown)
            notifier.close()
            status_bar.close()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the application; return the process exit status."""
    args = build_parser().parse_args(argv)
    if args.version:
        sys.stdout.write(version_text())
        return 0

    bus = EventBus()
    init_log_service(bus)
    try:
        return _run(bus, args.port, args.baud)
    finally:
        init_log_service(None)


if __name__ == "__main__":
    sys.exit(main())