"""A panel that polls the modem's signal quality and shows it as a bar chart."""

from __future__ import annotations

import re
import threading
from datetime import datetime
from typing import Optional

import urwid

from atcli.model import Event, EventType, View
from atcli.services.event_bus import EventBus
from atcli.views.view_manager import _markup

_CSQ = re.compile(r"\+CSQ:\s*(\d+),\s*(\d+)", re.ASCII)
_BAR_COUNT = 10

_INACTIVE_TEXT = "[yellow]Signal monitoring inactive[white]\n\nUse /signal to start monitoring"
_STARTING_TEXT = (
    "[yellow]Initializing signal monitor...[white]\n\nWaiting for first signal reading..."
)
_STOPPED_TEXT = "[yellow]Signal monitoring stopped[white]\n\nUse /signal to restart monitoring"

_QUALITY_BANDS = (
    (20, "Very Poor", "[red]"),
    (40, "Poor", "[orange]"),
    (60, "Fair", "[yellow]"),
    (80, "Good", "[lime]"),
)


class SignalChart(View):
    """Polls ``AT+CSQ`` and shows strength, dBm, bars and a quality rating.

    CSQ runs from 0 (-113 dBm or less) to 31 (-51 dBm or more); 99 means unknown.
    """

    name = "signal"
    start_delay = 1.0
    poll_interval = 5.0

    def __init__(
        self, title: str = "Signal Strength", event_bus: Optional[EventBus] = None
    ) -> None:
        if event_bus is None:
            raise ValueError("an event bus is required")
        self._bus = event_bus
        self.stopped = True
        self.signal_csq = 0
        self.text = ""
        self._label = urwid.Text("", align="center")
        self.widget = urwid.LineBox(urwid.Filler(self._label, valign="top"), title=f" {title} ")
        self._monitor_stop = threading.Event()

        event_bus.subscribe(EventType.SERIAL_RESPONSE, self._on_modem_response)
        event_bus.subscribe(EventType.STOP_SIGNAL, lambda event: self.stop())
        event_bus.subscribe(EventType.START_SIGNAL, lambda event: self.start())
        self._set_text(_INACTIVE_TEXT)

    def query_signal_strength(self) -> None:
        """Ask the modem for its signal quality."""
        self._bus.publish(Event(EventType.AT_MODEM_COMMAND, "AT+CSQ"))

    def parse_csq_response(self, response: str) -> None:
        """Take the CSQ value from a ``+CSQ`` line and redraw; ignore other text."""
        match = _CSQ.search(response)
        if match is None:
            return
        self.signal_csq = int(match.group(1))
        self._update_display()

    def start(self) -> None:
        """Begin polling, unless already running."""
        if not self.stopped:
            return
        self.stopped = False
        self._set_text(_STARTING_TEXT)
        self._monitor_stop = threading.Event()
        threading.Thread(
            target=self._poll, args=(self._monitor_stop,), name="signal-monitor", daemon=True
        ).start()

    def stop(self) -> None:
        """Stop polling."""
        if self.stopped:
            return
        self.stopped = True
        self._monitor_stop.set()
        self._set_text(_STOPPED_TEXT)

    def _poll(self, stop: threading.Event) -> None:
        if stop.wait(self.start_delay):
            return
        self.query_signal_strength()
        while not stop.wait(self.poll_interval):
            if self.stopped:
                return
            self.query_signal_strength()

    def _on_modem_response(self, event: Event) -> None:
        if self.stopped or not isinstance(event.payload, str):
            return
        response = event.payload
        if response.startswith("-> "):
            return
        if "+CSQ:" in response:
            self.parse_csq_response(response)

    def _update_display(self) -> None:
        csq = self.signal_csq
        if csq == 99:
            signal_text = "Signal not detectable"
            bars = ""
            quality, colour = "Unknown", "[gray]"
        else:
            percentage = int(csq / 31.0 * 100)
            dbm = -113 + 2 * csq
            quality, colour = next(
                ((name, tag) for limit, name, tag in _QUALITY_BANDS if percentage < limit),
                ("Excellent", "[green]"),
            )
            filled = max(1, csq * _BAR_COUNT // 31)
            bars = f"{colour}{'█' * filled}{'░' * (_BAR_COUNT - filled)}[white]"
            signal_text = (
                f"Signal Strength: {colour}{percentage}%[white] ({dbm} dBm)\nCSQ Value: {csq}/31"
            )

        stamp = datetime.now().strftime("%H:%M:%S")
        self._set_text(
            f"\n{signal_text}\n\n{bars}\n\n{colour}{quality}[white]\n\nLast updated: {stamp}"
        )
        self._bus.publish(Event(EventType.SIGNAL_UPDATED))

    def _set_text(self, text: str) -> None:
        self.text = text
        self._label.set_text(_markup(text))
        self._bus.publish(Event(EventType.APP_REDRAW))