"""A small thread-safe publish/subscribe event bus."""

from __future__ import annotations

import threading
from collections import defaultdict

from atcli.model import Event, EventHandler, EventType


class EventBus:
    """Routes events to the handlers subscribed to their type."""

    def __init__(self) -> None:
        self._subscribers: defaultdict[EventType, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Register ``handler`` for events of ``event_type``."""
        with self._lock:
            self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Remove the first registration of ``handler`` for ``event_type``, if any."""
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            try:
                handlers.remove(handler)
            except ValueError:
                pass

    def publish(self, event: Event) -> None:
        """Call every handler subscribed to the event's type, in subscription order."""
        with self._lock:
            handlers = list(self._subscribers.get(event.type, ()))
        for handler in handlers:
            handler(event)