"""Registry of named views, plus widget helpers shared by the views."""

from __future__ import annotations

import re
from typing import Callable, Optional, Union

import urwid

from atcli.model import Event, EventType, View
from atcli.services.event_bus import EventBus

_COLOURS = ("yellow", "white", "red", "green", "blue", "gray", "orange", "lime")
_TAG = re.compile(r"\[(" + "|".join(_COLOURS) + r")\]")
_NAVIGATION_KEYS = frozenset({"up", "down", "page up", "page down", "home", "end"})

Markup = Union[str, list]


def _markup(text: str) -> Markup:
    """Turn ``[colour]`` tags into urwid markup; ``[white]`` resets to the default."""
    parts: list = []
    attr: Optional[str] = None
    pos = 0

    def add(segment: str) -> None:
        if segment:
            parts.append(segment if attr is None else (attr, segment))

    for match in _TAG.finditer(text):
        add(text[pos:match.start()])
        attr = None if match.group(1) == "white" else match.group(1)
        pos = match.end()
    add(text[pos:])
    return parts or ""


def _focus_input_unless_navigation(bus: EventBus, key: str) -> str:
    """Ask for the input field to take focus unless ``key`` scrolls the view."""
    if key not in _NAVIGATION_KEYS:
        bus.publish(Event(EventType.FOCUS_INPUT))
    return key


class _TextLog:
    """An append-only, scrollable block of tagged text, one widget row per line."""

    def __init__(self, text: str = "") -> None:
        self._lines = [""]
        self.walker = urwid.SimpleFocusListWalker([self._row("")])
        self.listbox = urwid.ListBox(self.walker)
        self.highlighted: Optional[int] = None
        self.write(text)

    @staticmethod
    def _row(line: str) -> urwid.AttrMap:
        return urwid.AttrMap(urwid.Text(_markup(line)), None)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def set_text(self, text: str) -> None:
        self._lines = [""]
        self.walker[:] = [self._row("")]
        self.highlighted = None
        self.write(text)

    def write(self, text: str) -> None:
        if not text:
            return
        first, *rest = text.split("\n")
        self._lines[-1] += first
        self.walker[-1] = self._row(self._lines[-1])
        self._lines.extend(rest)
        self.walker.extend(self._row(line) for line in rest)

    def scroll_to_end(self) -> None:
        self.walker.set_focus(len(self.walker) - 1)

    def highlight(self, index: Optional[int]) -> None:
        previous = self.highlighted
        if previous is not None and 0 <= previous < len(self.walker):
            self.walker[previous].set_attr_map({None: None})
        self.highlighted = index
        if index is not None and 0 <= index < len(self.walker):
            self.walker[index].set_attr_map({None: "highlight"})


class _KeyCapture(urwid.WidgetWrap):
    """Lets a handler see, and possibly consume, every key before the wrapped widget."""

    def __init__(self, widget: urwid.Widget, handler: Callable[[str], Optional[str]]) -> None:
        super().__init__(widget)
        self._handler = handler

    def keypress(self, size, key):
        key = self._handler(key)
        if key is None:
            return None
        return self._w.keypress(size, key)


class ViewManager:
    """Holds every view by its name."""

    def __init__(self) -> None:
        self._views: dict[str, View] = {}

    def register(self, view: View) -> None:
        """Store ``view`` under its name, replacing any earlier view of that name."""
        self._views[view.name] = view

    def get_view(self, name: str) -> View:
        """Return the view called ``name``; raise KeyError if there is none."""
        try:
            return self._views[name]
        except KeyError:
            raise KeyError(f"View not found: {name}") from None