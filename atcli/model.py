"""Core data types shared across the application: events, commands and AT flows."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Sequence


class EventType(str, Enum):
    """Kinds of events carried by the event bus."""

    APP_REDRAW = "app_redraw"
    APP_FOCUS = "app_focus"
    APP_SHUTDOWN = "app_shutdown"
    FOCUS_INPUT = "focus_input"
    COMMAND_SENT = "command_sent"
    AT_MODEM_COMMAND = "atmodem_command"
    AT_MODEM_FLOW = "atmodem_flow"
    COMMAND_HISTORY = "command_history"
    INPUT_SET_COMMAND = "input_set_command"
    REPLY_RECEIVED = "reply_received"
    LOG_MESSAGE = "log_message"
    CHANGE_LAYOUT = "change_layout"
    SIGNAL_UPDATED = "signal_updated"
    GPS_UPDATED = "gps_updated"
    SERIAL_ERROR = "serial_error"
    SERIAL_RESPONSE = "serial_response"
    LAYOUT_CHANGE = "layout_change"
    STOP_SIGNAL = "stop_signal"
    START_SIGNAL = "start_signal"
    STOP_GPS = "stop_gps"
    START_GPS = "start_gps"
    UPDATE_TIME = "update_time"


@dataclass(frozen=True)
class Event:
    """A message published on the event bus."""

    type: EventType
    payload: Any = None


EventHandler = Callable[[Event], None]


@dataclass(frozen=True)
class Command:
    """A registered slash command."""

    name: str
    description: str
    run: Callable[[Sequence[str]], None]


@dataclass(frozen=True)
class ATCommandPayload:
    """An AT command to send, tagged with the flow that owns the port, if any."""

    command: str
    owner_id: str = ""


@dataclass(frozen=True)
class ATFlowStep:
    """One step of a multi-step AT flow; every expected response must arrive."""

    command: str
    expected_responses: tuple[str, ...] = ()


@dataclass(frozen=True)
class HistoryItem:
    """A sent command and the line it occupies in the command view."""

    cmd: str
    index: int


class CommandInterface(ABC):
    """Something that can be registered as a slash command."""

    name: str
    description: str

    @abstractmethod
    def run(self, args: Sequence[str]) -> None:
        """Execute the command; raise on failure."""


class View(ABC):
    """A named UI component."""

    name: str
    widget: Any = None


class Layout(View):
    """A full screen arrangement of views."""

    @abstractmethod
    def on_layout_change(self) -> None:
        """Called when the layout becomes active or its contents change."""