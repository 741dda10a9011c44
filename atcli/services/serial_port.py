"""Serial port access: line-oriented reads, AT command writes and locked multi-step flows."""

from __future__ import annotations

import threading
import time
from typing import Any

import serial

from atcli.model import ATCommandPayload, ATFlowStep, Event, EventType
from atcli.services.event_bus import EventBus
from atcli.services.log_service import log_message

_READ_SIZE = 256
_READ_TIMEOUT = 0.1
_ERROR_BACKOFF = 1.0


class SerialPortError(Exception):
    """Raised or published when the serial port cannot do what was asked."""


class FlowLockError(SerialPortError):
    """Raised or published when the flow lock is held by someone else."""


class SerialPort:
    """Connects the event bus to a serial modem.

    Lines read from the port are published as ``SERIAL_RESPONSE`` events; AT
    commands published as ``AT_MODEM_COMMAND`` are written to the port, and
    ``AT_MODEM_FLOW`` events run multi-step flows on a background thread.
    """

    step_timeout: float = 3.0
    flow_lock_timeout: float = 120.0

    def __init__(
        self,
        event_bus: EventBus,
        port_name: str,
        baud_rate: int,
        port: Any = None,
    ) -> None:
        if port is None:
            try:
                port = serial.Serial(
                    port=port_name,
                    baudrate=baud_rate,
                    parity=serial.PARITY_NONE,
                    stopbits=serial.STOPBITS_ONE,
                    timeout=_READ_TIMEOUT,
                )
            except (serial.SerialException, ValueError) as exc:
                raise SerialPortError(f"failed to open serial port {port_name}: {exc}") from exc
        self.port_name = port_name
        self.baud_rate = baud_rate
        self._port = port
        self._bus = event_bus

        self._flow_cond = threading.Condition()
        self._flow_owner = ""

        self._feed_lock = threading.Lock()
        self._partial = b""
        self._closed = threading.Event()

        event_bus.subscribe(EventType.AT_MODEM_COMMAND, self.write)
        event_bus.subscribe(EventType.AT_MODEM_FLOW, self._start_flow)

        self._reader = threading.Thread(
            target=self.read_forever, name=f"serial-reader-{port_name}", daemon=True
        )
        self._reader.start()

    def __enter__(self) -> SerialPort:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Stop reading, detach from the bus and close the port."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._bus.unsubscribe(EventType.AT_MODEM_COMMAND, self.write)
        self._bus.unsubscribe(EventType.AT_MODEM_FLOW, self._start_flow)
        self._port.close()
        if threading.current_thread() is not self._reader:
            self._reader.join(timeout=2.0)

    def read_forever(self) -> None:
        """Read from the port until closed, publishing complete lines."""
        while not self._closed.is_set():
            try:
                data = self._port.read(_READ_SIZE)
            except (serial.SerialException, OSError) as exc:
                if self._closed.is_set():
                    break
                self._publish_error(exc)
                self._closed.wait(_ERROR_BACKOFF)
                continue
            if data:
                self.feed(data)

    def feed(self, data: bytes) -> None:
        """Split incoming bytes into lines, publishing each complete, stripped line."""
        with self._feed_lock:
            *complete, self._partial = (self._partial + data).split(b"\n")
            for line in complete:
                text = line.decode("utf-8", errors="replace").strip()
                self._bus.publish(Event(EventType.SERIAL_RESPONSE, text))

    def write(self, event: Event) -> None:
        """Write the event's AT command to the port, honouring the flow lock."""
        payload = event.payload
        if isinstance(payload, str):
            payload = ATCommandPayload(payload)
        elif not isinstance(payload, ATCommandPayload):
            self._publish_error(SerialPortError("invalid AT command payload"))
            return

        with self._flow_cond:
            owner = self._flow_owner
        if owner and owner != payload.owner_id:
            self._publish_error(
                FlowLockError(f"flow lock held by another owner: ownerId={owner}")
            )
            return

        command = payload.command
        try:
            self._port.write(f"{command}\r\n".encode())
        except (serial.SerialException, OSError) as exc:
            log_message(f"-> {command}")
            self._publish_error(exc)
            return
        log_message(f"-> {command}")
        self._bus.publish(Event(EventType.SERIAL_RESPONSE, command.strip()))

    def run_flow(self, event: Event) -> None:
        """Run the flow steps in the event's payload while holding the flow lock."""
        owner_id = f"flow-{time.time_ns()}"
        try:
            self.acquire_flow_lock(owner_id, self.flow_lock_timeout)
        except FlowLockError as exc:
            self._publish_error(FlowLockError(f"could not acquire flow lock for flow: {exc}"))
            return
        try:
            steps = event.payload
            if not isinstance(steps, (list, tuple)) or not all(
                isinstance(step, ATFlowStep) for step in steps
            ):
                self._publish_error(
                    SerialPortError("invalid flow payload: expected a sequence of ATFlowStep")
                )
                return
            for step in steps:
                if not self._run_step(step, owner_id):
                    break
        finally:
            self.release_flow_lock(owner_id)

    def acquire_flow_lock(self, owner_id: str, timeout: float) -> None:
        """Take the flow lock for ``owner_id``; re-entrant for the same owner."""
        deadline = time.monotonic() + timeout
        with self._flow_cond:
            while self._flow_owner and self._flow_owner != owner_id:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise FlowLockError("timeout acquiring flow lock")
                self._flow_cond.wait(remaining)
            self._flow_owner = owner_id

    def release_flow_lock(self, owner_id: str) -> None:
        """Release the flow lock if ``owner_id`` holds it."""
        with self._flow_cond:
            if self._flow_owner == owner_id:
                self._flow_owner = ""
                self._flow_cond.notify_all()

    def _start_flow(self, event: Event) -> None:
        threading.Thread(target=self.run_flow, args=(event,), daemon=True).start()

    def _run_step(self, step: ATFlowStep, owner_id: str) -> bool:
        outstanding = set(step.expected_responses)
        guard = threading.Lock()
        done = threading.Event()
        if not outstanding:
            done.set()

        def on_response(event: Event) -> None:
            resp = event.payload
            if not isinstance(resp, str) or not resp or resp.startswith("-> "):
                return
            with guard:
                outstanding.discard(resp)
                if not outstanding:
                    done.set()

        self._bus.subscribe(EventType.SERIAL_RESPONSE, on_response)
        try:
            self.write(
                Event(EventType.AT_MODEM_COMMAND, ATCommandPayload(step.command, owner_id))
            )
            if done.wait(self.step_timeout):
                return True
            self._publish_error(
                SerialPortError(f"timeout waiting for response to '{step.command}'")
            )
            return False
        finally:
            self._bus.unsubscribe(EventType.SERIAL_RESPONSE, on_response)

    def _publish_error(self, error: Exception) -> None:
        self._bus.publish(Event(EventType.SERIAL_ERROR, error))