"""Switches the screen between the registered layouts."""

from __future__ import annotations

import urwid

from atcli.model import Event, EventType, Layout
from atcli.services.event_bus import EventBus


class LayoutManager:
    """Keeps every layout by name and shows one of them at a time.

    ``widget`` is the root widget of the application; it always holds the
    current layout's widget.
    """

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus
        self._layouts: dict[str, Layout] = {}
        self._current = ""
        self.widget = urwid.WidgetPlaceholder(urwid.SolidFill(" "))
        event_bus.subscribe(EventType.CHANGE_LAYOUT, self._on_change_layout)
        event_bus.subscribe(EventType.LAYOUT_CHANGE, self._on_layout_change)

    @property
    def current_layout(self) -> str:
        """Name of the layout on screen, or an empty string before one is shown."""
        return self._current

    def register(self, layout: Layout, visible: bool = False) -> None:
        """Add ``layout`` under its name; show it at once if ``visible``."""
        self._layouts[layout.name] = layout
        if visible:
            self._show(layout)

    def _show(self, layout: Layout) -> None:
        self.widget.original_widget = layout.widget
        self._current = layout.name

    def _on_change_layout(self, event: Event) -> None:
        name = event.payload
        if not isinstance(name, str):
            return
        layout = self._layouts.get(name)
        if layout is None:
            return
        self._show(layout)
        layout.on_layout_change()
        self._bus.publish(Event(EventType.APP_REDRAW))

    def _on_layout_change(self, event: Event) -> None:
        layout = self._layouts.get(self._current)
        if layout is not None:
            layout.on_layout_change()