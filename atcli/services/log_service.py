"""Application-wide logging that publishes timestamped messages on the event bus."""

from __future__ import annotations

import threading
from datetime import datetime

from atcli.model import Event, EventType
from atcli.services.event_bus import EventBus


class _LogService:
    def __init__(self) -> None:
        self.bus: EventBus | None = None
        self.lock = threading.RLock()


_service = _LogService()


def init_log_service(event_bus: EventBus | None) -> None:
    """Route log messages to ``event_bus``; ``None`` disables publishing."""
    with _service.lock:
        _service.bus = event_bus


def log_message(message: str) -> None:
    """Publish ``message`` prefixed with the current ``[HH:MM:SS]`` time."""
    with _service.lock:
        timestamp = datetime.now().strftime("%H:%M:%S")
        formatted = f"[{timestamp}] {message}"
        if _service.bus is not None:
            _service.bus.publish(Event(EventType.LOG_MESSAGE, formatted))