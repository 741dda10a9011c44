"""Screens made of the input line, the sent-commands panel, one detail panel and the status bar."""

from __future__ import annotations

import urwid

from atcli.model import Event, EventType, Layout
from atcli.services.event_bus import EventBus
from atcli.views.view_manager import ViewManager


class _PanelLayout(Layout):
    """Input on top, commands (and optionally the log) left, a detail view right, status below."""

    _right_view_name = ""

    def __init__(self, view_manager: ViewManager, event_bus: EventBus) -> None:
        self._bus = event_bus
        self._command_widget = view_manager.get_view("command").widget
        self.right_panel = view_manager.get_view(self._right_view_name).widget
        self._log_view = view_manager.get_view("log")
        input_widget = view_manager.get_view("input").widget
        status_widget = view_manager.get_view("statusbar").widget

        self.left_panel = urwid.Pile([self._command_widget])
        panels = urwid.Columns([self.left_panel, self.right_panel])
        self.widget = urwid.Pile(
            [("pack", input_widget), panels, ("pack", status_widget)], focus_item=0
        )

    def on_layout_change(self) -> None:
        """Show the log under the commands when it is visible; hide it otherwise."""
        pile = self.left_panel
        if self._log_view.visible:
            pile.contents = [
                (self._command_widget, pile.options("weight", 2)),
                (self._log_view.widget, pile.options("weight", 1)),
            ]
        else:
            pile.contents = [(self._command_widget, pile.options("weight", 1))]
        pile.focus_position = 0
        self._bus.publish(Event(EventType.APP_REDRAW))


class HomeLayout(_PanelLayout):
    """The main screen, with modem replies on the right."""

    name = "home"
    _right_view_name = "reply"

    def __init__(self, view_manager: ViewManager, event_bus: EventBus) -> None:
        super().__init__(view_manager, event_bus)

    def on_layout_change(self) -> None:
        """Resize the left panel to match the log view's visibility."""
        super().on_layout_change()


class SignalChartLayout(_PanelLayout):
    """The signal screen, with the signal chart on the right."""

    name = "signal"
    _right_view_name = "signal"

    def __init__(self, view_manager: ViewManager, event_bus: EventBus) -> None:
        super().__init__(view_manager, event_bus)

    def on_layout_change(self) -> None:
        """Resize the left panel to match the log view's visibility."""
        super().on_layout_change()


class GPSLayout(_PanelLayout):
    """The GPS screen, with the GPS position on the right."""

    name = "gps"
    _right_view_name = "gps"

    def __init__(self, view_manager: ViewManager, event_bus: EventBus) -> None:
        super().__init__(view_manager, event_bus)

    def on_layout_change(self) -> None:
        """Resize the left panel to match the log view's visibility."""
        super().on_layout_change()