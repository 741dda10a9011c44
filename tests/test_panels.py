import pytest

from atcli.layouts.layout_manager import LayoutManager
from atcli.layouts.panels import GPSLayout, HomeLayout, SignalChartLayout
from atcli.model import Event, EventType
from atcli.services.event_bus import EventBus
from atcli.views.command_view import CommandView
from atcli.views.gps_view import GPSView
from atcli.views.input_field import InputField
from atcli.views.log_view import LogView
from atcli.views.reply_view import ReplyView
from atcli.views.signal_chart import SignalChart
from atcli.views.status_bar import StatusBar
from atcli.views.view_manager import ViewManager


@pytest.fixture
def setup():
    bus = EventBus()
    manager = ViewManager()
    status = StatusBar(bus)
    for view in (
        InputField(bus),
        CommandView(bus),
        ReplyView(bus),
        SignalChart("Signal Strength", bus),
        GPSView("GPS Location", bus),
        LogView(bus),
        status,
    ):
        manager.register(view)
    yield bus, manager
    status.close()


LAYOUTS = [(HomeLayout, "home", "reply"), (SignalChartLayout, "signal", "signal"), (GPSLayout, "gps", "gps")]


@pytest.mark.parametrize("cls,name,right", LAYOUTS)
def test_name_and_right_panel(setup, cls, name, right):
    bus, manager = setup
    layout = cls(manager, bus)
    assert layout.name == name
    assert layout.right_panel is manager.get_view(right).widget


@pytest.mark.parametrize("cls,name,right", LAYOUTS)
def test_log_hidden_initially(setup, cls, name, right):
    bus, manager = setup
    layout = cls(manager, bus)
    widgets = [w for w, _ in layout.left_panel.contents]
    assert widgets == [manager.get_view("command").widget]


@pytest.mark.parametrize("cls,name,right", LAYOUTS)
def test_log_shown_when_visible(setup, cls, name, right):
    bus, manager = setup
    layout = cls(manager, bus)
    manager.get_view("log").visible = True
    layout.on_layout_change()
    contents = layout.left_panel.contents
    assert [w for w, _ in contents] == [
        manager.get_view("command").widget,
        manager.get_view("log").widget,
    ]
    assert [opts[1] for _, opts in contents] == [2, 1]


@pytest.mark.parametrize("cls,name,right", LAYOUTS)
def test_log_hidden_again(setup, cls, name, right):
    bus, manager = setup
    layout = cls(manager, bus)
    log = manager.get_view("log")
    log.visible = True
    layout.on_layout_change()
    log.visible = False
    layout.on_layout_change()
    contents = layout.left_panel.contents
    assert [w for w, _ in contents] == [manager.get_view("command").widget]
    assert [opts[1] for _, opts in contents] == [1]


def test_input_has_focus(setup):
    bus, manager = setup
    layout = HomeLayout(manager, bus)
    assert layout.widget.focus_position == 0
    assert layout.widget.contents[0][0] is manager.get_view("input").widget


def test_status_bar_at_bottom(setup):
    bus, manager = setup
    layout = HomeLayout(manager, bus)
    assert layout.widget.contents[-1][0] is manager.get_view("statusbar").widget


def test_missing_view_raises():
    with pytest.raises(KeyError):
        HomeLayout(ViewManager(), EventBus())


def test_layout_change_event_through_manager(setup):
    bus, manager = setup
    layouts = LayoutManager(bus)
    home = HomeLayout(manager, bus)
    layouts.register(home, True)
    manager.get_view("log").visible = True
    bus.publish(Event(EventType.LAYOUT_CHANGE))
    assert len(home.left_panel.contents) == 2


def test_on_layout_change_requests_redraw(setup):
    bus, manager = setup
    layout = GPSLayout(manager, bus)
    redraws = []
    bus.subscribe(EventType.APP_REDRAW, redraws.append)
    layout.on_layout_change()
    assert len(redraws) == 1