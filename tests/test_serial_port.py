import queue
import threading
import time
from types import SimpleNamespace

import pytest
import serial

from atcli.model import ATCommandPayload, ATFlowStep, Event, EventType
from atcli.services.event_bus import EventBus
from atcli.services.serial_port import FlowLockError, SerialPort, SerialPortError


class FakePort:
    def __init__(self, replies=None, read_errors=None):
        self.replies = replies or {}
        self.read_errors = list(read_errors or [])
        self.written = []
        self.closed = False
        self.fail_write = None
        self._incoming = queue.Queue()

    def push(self, data):
        self._incoming.put(data)

    def write(self, data):
        if self.fail_write is not None:
            raise self.fail_write
        self.written.append(data)
        for reply in self.replies.get(data, ()):
            self.push(reply)
        return len(data)

    def read(self, size):
        if self.read_errors:
            raise self.read_errors.pop(0)
        try:
            return self._incoming.get(timeout=0.02)
        except queue.Empty:
            return b""

    def close(self):
        self.closed = True


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(0.01)


def _make_rig(replies=None, read_errors=None):
    bus = EventBus()
    responses, errors = [], []
    bus.subscribe(EventType.SERIAL_RESPONSE, lambda e: responses.append(e.payload))
    bus.subscribe(EventType.SERIAL_ERROR, lambda e: errors.append(e.payload))
    port = FakePort(replies, read_errors)
    sp = SerialPort(bus, "fake0", 115200, port=port)
    return SimpleNamespace(bus=bus, port=port, sp=sp, responses=responses, errors=errors)


@pytest.fixture
def rig():
    r = _make_rig()
    yield r
    r.sp.close()


def test_feed_splits_lines_and_keeps_partial(rig):
    rig.sp.feed(b"OK\r\nPAR")
    assert rig.responses == ["OK"]
    rig.sp.feed(b"TIAL\n")
    assert rig.responses == ["OK", "PARTIAL"]


def test_feed_publishes_blank_lines(rig):
    rig.sp.feed(b"\r\nOK\r\n")
    assert rig.responses == ["", "OK"]


def test_reader_thread_publishes_lines(rig):
    rig.port.push(b"+CSQ: 20,99\r")
    rig.port.push(b"\n")
    _wait_for(lambda: rig.responses == ["+CSQ: 20,99"])
    assert rig.responses == ["+CSQ: 20,99"]


def test_write_string_payload_sends_and_echoes(rig):
    rig.bus.publish(Event(EventType.AT_MODEM_COMMAND, "AT"))
    assert rig.port.written == [b"AT\r\n"]
    assert rig.responses == ["AT"]


def test_write_command_payload(rig):
    rig.sp.write(Event(EventType.AT_MODEM_COMMAND, ATCommandPayload("ATI", "")))
    assert rig.port.written == [b"ATI\r\n"]


def test_write_invalid_payload_publishes_error(rig):
    rig.sp.write(Event(EventType.AT_MODEM_COMMAND, 42))
    assert rig.port.written == []
    assert len(rig.errors) == 1
    assert isinstance(rig.errors[0], SerialPortError)


def test_write_failure_publishes_error(rig):
    failure = serial.SerialException("device gone")
    rig.port.fail_write = failure
    rig.sp.write(Event(EventType.AT_MODEM_COMMAND, "AT"))
    assert rig.errors == [failure]
    assert rig.responses == []


def test_write_blocked_by_other_flow_owner(rig):
    rig.sp.acquire_flow_lock("owner-a", 0.1)
    rig.sp.write(Event(EventType.AT_MODEM_COMMAND, ATCommandPayload("AT", "owner-b")))
    assert rig.port.written == []
    assert isinstance(rig.errors[0], FlowLockError)
    assert "ownerId=owner-a" in str(rig.errors[0])
    rig.sp.write(Event(EventType.AT_MODEM_COMMAND, ATCommandPayload("AT", "owner-a")))
    assert rig.port.written == [b"AT\r\n"]


def test_flow_lock_is_reentrant_and_exclusive(rig):
    rig.sp.acquire_flow_lock("a", 0.1)
    rig.sp.acquire_flow_lock("a", 0.1)
    with pytest.raises(FlowLockError):
        rig.sp.acquire_flow_lock("b", 0.05)


def test_release_by_non_owner_is_ignored(rig):
    rig.sp.acquire_flow_lock("a", 0.1)
    rig.sp.release_flow_lock("b")
    with pytest.raises(FlowLockError):
        rig.sp.acquire_flow_lock("c", 0.05)
    rig.sp.release_flow_lock("a")
    rig.sp.acquire_flow_lock("c", 0.05)
    with pytest.raises(FlowLockError):
        rig.sp.acquire_flow_lock("a", 0.0)


def test_release_wakes_waiter(rig):
    rig.sp.acquire_flow_lock("a", 0.1)
    outcome = []

    def waiter():
        try:
            rig.sp.acquire_flow_lock("b", 2.0)
            outcome.append("acquired")
        except FlowLockError:
            outcome.append("timed out")

    thread = threading.Thread(target=waiter)
    thread.start()
    time.sleep(0.05)
    assert outcome == []
    rig.sp.release_flow_lock("a")
    thread.join(2.0)
    assert outcome == ["acquired"]
    with pytest.raises(FlowLockError):
        rig.sp.acquire_flow_lock("a", 0.0)


def test_run_flow_sends_all_steps():
    r = _make_rig(
        replies={
            b"AT+CGNSSPWR=0\r\n": [b"OK\r\n"],
            b"AT+CGNSSPWR=1\r\n": [b"OK\r\n+CGNSSPWR: READY!\r\n"],
        }
    )
    try:
        steps = [
            ATFlowStep("AT+CGNSSPWR=0", ("OK",)),
            ATFlowStep("AT+CGNSSPWR=1", ("OK", "+CGNSSPWR: READY!")),
        ]
        r.sp.run_flow(Event(EventType.AT_MODEM_FLOW, steps))
        assert r.port.written == [b"AT+CGNSSPWR=0\r\n", b"AT+CGNSSPWR=1\r\n"]
        assert r.errors == []
        r.sp.acquire_flow_lock("after", 0.0)
    finally:
        r.sp.close()


def test_run_flow_aborts_on_timeout(rig):
    rig.sp.step_timeout = 0.1
    steps = [ATFlowStep("AT", ("OK",)), ATFlowStep("ATI", ("OK",))]
    rig.sp.run_flow(Event(EventType.AT_MODEM_FLOW, steps))
    assert rig.port.written == [b"AT\r\n"]
    assert len(rig.errors) == 1
    assert "timeout waiting for response to 'AT'" in str(rig.errors[0])
    rig.sp.acquire_flow_lock("after", 0.0)


def test_run_flow_rejects_invalid_payload(rig):
    rig.sp.run_flow(Event(EventType.AT_MODEM_FLOW, "AT"))
    assert rig.port.written == []
    assert isinstance(rig.errors[0], SerialPortError)


def test_flow_event_runs_in_background():
    r = _make_rig(replies={b"AT\r\n": [b"OK\r\n"]})
    try:
        r.bus.publish(Event(EventType.AT_MODEM_FLOW, [ATFlowStep("AT", ("OK",))]))
        _wait_for(lambda: "OK" in r.responses)
        assert r.port.written == [b"AT\r\n"]
        assert [line for line in r.responses if line == "OK"] == ["OK"]
    finally:
        r.sp.close()


def test_read_error_is_published():
    failure = OSError("read failed")
    r = _make_rig(read_errors=[failure])
    try:
        _wait_for(lambda: r.errors == [failure])
        assert r.errors == [failure]
    finally:
        r.sp.close()


def test_close_detaches_and_closes_port():
    r = _make_rig()
    with r.sp:
        pass
    assert r.port.closed is True
    r.sp.close()
    r.bus.publish(Event(EventType.AT_MODEM_COMMAND, "AT"))
    assert r.port.written == []


def test_open_failure_raises():
    with pytest.raises(SerialPortError):
        SerialPort(EventBus(), "/nonexistent/serial-device", 115200)