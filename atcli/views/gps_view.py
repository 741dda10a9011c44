"""A panel that polls the modem for its GPS fix and shows the position."""

from __future__ import annotations

import re
import threading
from datetime import datetime
from typing import Optional

import urwid

from atcli.model import ATFlowStep, Event, EventType, View
from atcli.services.event_bus import EventBus
from atcli.services.log_service import log_message
from atcli.views.view_manager import _markup

_CGPSINFO = re.compile(r"\+CGPSINFO:\s*" + ",".join([r"([^,]*)"] * 9))

_INACTIVE_TEXT = "[yellow]GPS monitoring inactive[white]\n\nUse /gps to start monitoring"
_ACTIVE_TEXT = "[yellow]GPS monitoring active[white]\n\nWaiting for GPS data..."
_STOPPED_TEXT = "[yellow]GPS monitoring stopped[white]\n\nUse /gps to restart monitoring"
_NO_FIX_TEXT = (
    "\n[yellow]Waiting for GPS signal...[white]\n\n"
    "Make sure the GPS antenna is connected\nand has a clear view of the sky."
)

_INIT_FLOW = (
    ATFlowStep("AT+CGNSSPWR=0", ("OK",)),
    ATFlowStep("AT+CGNSSPWR=1", ("OK", "+CGNSSPWR: READY!")),
    ATFlowStep("AT+CGNSSTST=1", ("OK",)),
    ATFlowStep("AT+CGNSSPORTSWITCH=0,1", ("OK",)),
)
_STOP_FLOW = (
    ATFlowStep("AT+CGNSSTST=0", ("OK",)),
    ATFlowStep("AT+CGNSSPORTSWITCH=0,0", ("OK",)),
    ATFlowStep("AT+CGNSSPWR=0", ("OK",)),
)


def parse_coordinate(coord: str) -> float:
    """Convert an NMEA ``(d)ddmm.mmmm`` coordinate to decimal degrees.

    Raises ValueError if the text is empty or not in that form.
    """
    if not coord:
        raise ValueError("empty coordinate")
    decimal_pos = coord.find(".")
    if decimal_pos < 0:
        raise ValueError("invalid coordinate format")
    degree_end = decimal_pos - 2
    if degree_end <= 0:
        raise ValueError("invalid coordinate format")
    degrees = float(coord[:degree_end])
    minutes = float(coord[degree_end:])
    return degrees + minutes / 60.0


def _dms(value: float) -> tuple[int, int, float]:
    degrees = int(value)
    minutes = int((value - degrees) * 60)
    seconds = (value - degrees - minutes / 60) * 3600
    return degrees, minutes, seconds


class GPSView(View):
    """Starts and stops the modem's GNSS receiver and shows each ``+CGPSINFO`` fix."""

    name = "gps"
    start_delay = 1.0
    poll_interval = 5.0

    def __init__(self, title: str = "GPS Location", event_bus: Optional[EventBus] = None) -> None:
        if event_bus is None:
            raise ValueError("an event bus is required")
        self._bus = event_bus
        self.stopped = True
        self.latitude = 0.0
        self.longitude = 0.0
        self.altitude = 0.0
        self.satellites = 0
        self.last_updated: Optional[datetime] = None
        self.utc_time = ""
        self.date = ""
        self.text = ""
        self._label = urwid.Text("", align="center")
        self.widget = urwid.LineBox(urwid.Filler(self._label, valign="top"), title=f" {title} ")
        self._monitor_stop = threading.Event()
        self._monitor: Optional[threading.Thread] = None

        event_bus.subscribe(EventType.SERIAL_RESPONSE, self._on_modem_response)
        event_bus.subscribe(EventType.STOP_GPS, lambda event: self.stop())
        event_bus.subscribe(EventType.START_GPS, lambda event: self.start())
        self._set_text(_INACTIVE_TEXT)

    def query_gps(self) -> None:
        """Ask the modem for its current GPS information."""
        self._bus.publish(Event(EventType.AT_MODEM_COMMAND, "AT+CGPSINFO"))

    def parse_gps_response(self, response: str) -> None:
        """Update the position from a ``+CGPSINFO`` line and redraw."""
        match = _CGPSINFO.search(response)
        if match is None:
            self._update_display(has_data=False)
            return
        lat_str, lat_dir, lon_str, lon_dir, date_str, utc_str, alt_str, _, _ = match.groups()
        if not lat_str or not lon_str:
            self._update_display(has_data=False)
            return

        try:
            lat = parse_coordinate(lat_str)
        except ValueError:
            pass
        else:
            self.latitude = -lat if lat_dir == "S" else lat

        try:
            lon = parse_coordinate(lon_str)
        except ValueError:
            pass
        else:
            self.longitude = -lon if lon_dir == "W" else lon

        if len(date_str) == 6:
            self.date = f"{date_str[0:2]}-{date_str[2:4]}-{date_str[4:6]}"
        else:
            self.date = "N/A"

        try:
            utc = int(float(utc_str))
        except (ValueError, OverflowError):
            self.utc_time = "N/A"
        else:
            hh, rest = divmod(utc, 10000)
            mm, ss = divmod(rest, 100)
            self.utc_time = f"{hh:02d}:{mm:02d}:{ss:02d} UTC"

        try:
            self.altitude = float(alt_str)
        except ValueError:
            pass

        self.last_updated = datetime.now()
        self._update_display(has_data=True)

    def start(self) -> None:
        """Power up the GNSS receiver and begin polling for fixes."""
        self._bus.publish(Event(EventType.AT_MODEM_FLOW, _INIT_FLOW))
        if self.stopped:
            self.stopped = False
            self._set_text(_ACTIVE_TEXT)
        if self._monitor is None or not self._monitor.is_alive():
            self._monitor_stop = threading.Event()
            self._monitor = threading.Thread(
                target=self._poll, args=(self._monitor_stop,), name="gps-monitor", daemon=True
            )
            self._monitor.start()

    def stop(self) -> None:
        """Power down the GNSS receiver and stop polling."""
        self._bus.publish(Event(EventType.AT_MODEM_FLOW, _STOP_FLOW))
        if not self.stopped:
            self.stopped = True
            self._monitor_stop.set()
            self._set_text(_STOPPED_TEXT)

    def _poll(self, stop: threading.Event) -> None:
        if stop.wait(self.start_delay):
            return
        self.query_gps()
        while not stop.wait(self.poll_interval):
            if self.stopped:
                return
            self.query_gps()

    def _on_modem_response(self, event: Event) -> None:
        if self.stopped or not isinstance(event.payload, str):
            return
        response = event.payload
        if response.startswith("-> "):
            return
        if "+CGPSINFO:" in response:
            log_message(response)
            self.parse_gps_response(response)

    def _update_display(self, has_data: bool) -> None:
        if has_data:
            self._set_text(self._describe_fix())
        else:
            self._set_text(_NO_FIX_TEXT)
        self._bus.publish(Event(EventType.GPS_UPDATED))
        if self.utc_time and self.utc_time != "N/A":
            self._bus.publish(
                Event(
                    EventType.UPDATE_TIME,
                    {"utc": self.utc_time, "date": self.date, "last_updated": self.last_updated},
                )
            )

    def _describe_fix(self) -> str:
        lat_dir = "S" if self.latitude < 0 else "N"
        lon_dir = "W" if self.longitude < 0 else "E"
        lat = abs(self.latitude)
        lon = abs(self.longitude)
        lat_deg, lat_min, lat_sec = _dms(lat)
        lon_deg, lon_min, lon_sec = _dms(lon)

        parts = [
            "\n[green]Decimal Degrees:[white]\n"
            f"Latitude: {lat:.6f}° {lat_dir}\nLongitude: {lon:.6f}° {lon_dir}",
            "\n",
            "\n[green]Degrees, Minutes, Seconds:[white]\n"
            f"Latitude: {lat_deg}° {lat_min}' {lat_sec:.2f}\" {lat_dir}\n"
            f"Longitude: {lon_deg}° {lon_min}' {lon_sec:.2f}\" {lon_dir}",
        ]
        if self.altitude != 0:
            parts.append(f"\n\n[green]Altitude:[white] {self.altitude:.1f} meters")
        parts.append(f"\n\n[blue]Map:[white]\ngeo:{self.latitude:.6f},{self.longitude:.6f}")
        if self.utc_time:
            parts.append(f"\n\n[green]GPS UTC Time:[white] {self.utc_time}")
        if self.date:
            parts.append(f"\n[green]GPS Date:[white] {self.date}")
        stamp = self.last_updated.strftime("%H:%M:%S") if self.last_updated else ""
        parts.append(f"\n\nLast updated: {stamp}")
        return "".join(parts)

    def _set_text(self, text: str) -> None:
        self.text = text
        self._label.set_text(_markup(text))
        self._bus.publish(Event(EventType.APP_REDRAW))