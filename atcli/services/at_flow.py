"""Run a sequence of AT commands, waiting for the expected replies to each."""

from __future__ import annotations

import queue
import time
from typing import Callable, Iterable

from atcli.model import ATFlowStep, Event, EventType
from atcli.services.event_bus import EventBus


def contains_response(resp: str, exp: str) -> bool:
    """Return True if both are non-empty and ``exp`` occurs within ``resp``."""
    return bool(exp) and bool(resp) and exp in resp


class ATFlowRunner:
    """Sends each step's command and waits until all its expected responses arrive."""

    def __init__(
        self,
        event_bus: EventBus,
        steps: Iterable[ATFlowStep],
        timeout: float,
        logf: Callable[[str], None],
    ) -> None:
        self._bus = event_bus
        self._steps = list(steps)
        self._timeout = timeout
        self._logf = logf

    def run(self) -> bool:
        """Run every step in order; return False as soon as one times out."""
        responses: queue.Queue[str] = queue.Queue()

        def on_response(event: Event) -> None:
            if isinstance(event.payload, str):
                responses.put(event.payload)

        self._bus.subscribe(EventType.SERIAL_RESPONSE, on_response)
        try:
            return all(
                self._run_step(number, step, responses)
                for number, step in enumerate(self._steps, start=1)
            )
        finally:
            self._bus.unsubscribe(EventType.SERIAL_RESPONSE, on_response)

    def _run_step(self, number: int, step: ATFlowStep, responses: queue.Queue[str]) -> bool:
        self._logf(f"[ATFlow] Step {number}: Sending '{step.command}'")
        self._bus.publish(Event(EventType.AT_MODEM_COMMAND, step.command))

        outstanding = dict.fromkeys(step.expected_responses)
        deadline = time.monotonic() + self._timeout
        while outstanding:
            try:
                resp = responses.get(timeout=max(0.0, deadline - time.monotonic()))
            except queue.Empty:
                for exp in outstanding:
                    self._logf(f"[ATFlow] Step {number}: Timeout waiting for response: '{exp}'")
                return False
            for exp in list(outstanding):
                if contains_response(resp, exp):
                    self._logf(f"[ATFlow] Step {number}: Got expected response: '{exp}'")
                    del outstanding[exp]
        return True