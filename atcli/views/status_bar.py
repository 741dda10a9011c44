"""The bottom line: connection details on the left, GPS time on the right."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Optional

import urwid

from atcli.model import Event, EventType, View
from atcli.services.event_bus import EventBus
from atcli.views.view_manager import _markup


class StatusBar(View):
    """Shows the port and baud rate, and how long ago the GPS time was last seen."""

    name = "statusbar"
    refresh_interval = 1.0

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus
        self._port_name = ""
        self._baud_rate = 0
        self.last_utc_time = ""
        self.last_date = ""
        self.last_updated: Optional[datetime] = None
        self.left_text = ""
        self.right_text = ""
        self._left = urwid.Text("")
        self._right = urwid.Text("", align="right")
        self.widget = urwid.Columns([self._left, self._right])
        event_bus.subscribe(EventType.UPDATE_TIME, self._on_update_time)

        self._stopped = threading.Event()
        self._timer = threading.Thread(
            target=self._refresh_loop, name="status-bar-refresh", daemon=True
        )
        self._timer.start()

    @property
    def port_name(self) -> str:
        return self._port_name

    @port_name.setter
    def port_name(self, value: str) -> None:
        self._port_name = value
        self._show_connection()

    @property
    def baud_rate(self) -> int:
        return self._baud_rate

    @baud_rate.setter
    def baud_rate(self, value: int) -> None:
        self._baud_rate = value
        self._show_connection()

    def update_text(self) -> None:
        """Redraw both halves from the current state."""
        self._show_connection()
        right = ""
        if self.last_utc_time and self.last_updated is not None:
            secs_ago = int((datetime.now() - self.last_updated).total_seconds())
            if self.last_date:
                right = f"[Status] {self.last_date} {self.last_utc_time} ({secs_ago}s ago)"
            else:
                right = f"[Status] {self.last_utc_time} ({secs_ago}s ago)"
        self.right_text = right
        self._right.set_text(_markup(right))

    def close(self) -> None:
        """Stop the periodic refresh."""
        self._stopped.set()
        if threading.current_thread() is not self._timer:
            self._timer.join(timeout=2 * self.refresh_interval)

    def _show_connection(self) -> None:
        left = (
            f"[green]Connected to:[white] {self._port_name} "
            f"[green]Baud rate:[white] {self._baud_rate}"
        )
        self.left_text = left
        self._left.set_text(_markup(left))

    def _on_update_time(self, event: Event) -> None:
        data = event.payload
        if not isinstance(data, dict):
            return
        utc = data.get("utc")
        last_updated = data.get("last_updated")
        if not isinstance(utc, str) or not isinstance(last_updated, datetime):
            return
        date = data.get("date")
        self.last_utc_time = utc
        self.last_date = date if isinstance(date, str) else ""
        self.last_updated = last_updated
        self.update_text()

    def _refresh_loop(self) -> None:
        while not self._stopped.wait(self.refresh_interval):
            self.update_text()