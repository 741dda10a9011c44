import threading

import pytest

from atcli.model import Event, EventType
from atcli.services.event_bus import EventBus
from atcli.views.signal_chart import SignalChart


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def chart(bus):
    view = SignalChart("Signal Strength", bus)
    view.start_delay = 60.0
    yield view
    view.stop()


def test_initial_text(chart):
    assert "Signal monitoring inactive" in chart.text
    assert chart.stopped is True


def test_best_signal(chart):
    chart.parse_csq_response("+CSQ: 31,99")
    assert chart.signal_csq == 31
    assert "Excellent" in chart.text
    assert "-51 dBm" in chart.text
    assert "100%" in chart.text
    assert chart.text.count("█") == 10


def test_worst_signal_still_shows_one_bar(chart):
    chart.parse_csq_response("+CSQ: 0,0")
    assert "Very Poor" in chart.text
    assert "-113 dBm" in chart.text
    assert chart.text.count("█") == 1


def test_unknown_signal(chart):
    chart.parse_csq_response("+CSQ: 99,99")
    assert "Signal not detectable" in chart.text
    assert "Unknown" in chart.text
    assert "█" not in chart.text and "░" not in chart.text


@pytest.mark.parametrize(
    "csq, quality",
    [(5, "Very Poor"), (10, "Poor"), (16, "Fair"), (20, "Good"), (25, "Excellent")],
)
def test_quality_bands(chart, csq, quality):
    chart.parse_csq_response(f"+CSQ: {csq},0")
    assert f"{quality}[white]" in chart.text
    assert f"CSQ Value: {csq}/31" in chart.text


def test_bars_are_monotonic_and_ten_wide(chart):
    filled = []
    for csq in range(32):
        chart.parse_csq_response(f"+CSQ: {csq},0")
        full = chart.text.count("█")
        assert full + chart.text.count("░") == 10
        assert 1 <= full <= 10
        filled.append(full)
    assert filled == sorted(filled)


def test_malformed_response_is_ignored(chart):
    before = chart.text
    chart.parse_csq_response("+CSQ: x,y")
    assert chart.signal_csq == 0
    assert chart.text == before


def test_update_publishes_event(bus, chart):
    updates = []
    bus.subscribe(EventType.SIGNAL_UPDATED, updates.append)
    chart.parse_csq_response("+CSQ: 12,0")
    assert len(updates) == 1


def test_responses_ignored_while_stopped(bus, chart):
    bus.publish(Event(EventType.SERIAL_RESPONSE, "+CSQ: 20,0"))
    assert chart.signal_csq == 0


def test_responses_handled_after_start(bus, chart):
    chart.start()
    assert "Initializing signal monitor..." in chart.text
    bus.publish(Event(EventType.SERIAL_RESPONSE, "-> +CSQ: 7,0"))
    assert chart.signal_csq == 0
    bus.publish(Event(EventType.SERIAL_RESPONSE, "+CSQ: 20,0"))
    assert chart.signal_csq == 20


def test_stop_changes_text_only_when_running(chart):
    chart.stop()
    assert "inactive" in chart.text
    chart.start()
    chart.stop()
    assert chart.stopped is True
    assert "Signal monitoring stopped" in chart.text


def test_start_and_stop_events(bus, chart):
    bus.publish(Event(EventType.START_SIGNAL))
    assert chart.stopped is False
    bus.publish(Event(EventType.STOP_SIGNAL))
    assert chart.stopped is True


def test_query_signal_strength(bus, chart):
    commands = []
    bus.subscribe(EventType.AT_MODEM_COMMAND, lambda e: commands.append(e.payload))
    chart.query_signal_strength()
    assert commands == ["AT+CSQ"]


def test_monitor_polls(bus, chart):
    seen = threading.Event()
    bus.subscribe(
        EventType.AT_MODEM_COMMAND,
        lambda e: seen.set() if e.payload == "AT+CSQ" else None,
    )
    chart.start_delay = 0.0
    chart.poll_interval = 0.01
    chart.start()
    assert seen.wait(2.0)
    chart.stop()
    assert chart.stopped is True