"""Live progress events for gate runs.

A sink receives three kinds of events: a gate starting, a chunk of output
arriving, and a gate completing. Sinks are fire-and-forget: a sink that
raises is logged and ignored, it never changes how a gate is classified.
"""

import logging
import sys
from typing import Optional, Protocol, TextIO

from .result import GateOutcome, GateSpec

logger = logging.getLogger(__name__)

STDOUT = "stdout"
STDERR = "stderr"


class GateEventSink(Protocol):
    """Receiver for live gate progress."""

    def gate_started(self, gate: GateSpec) -> None: ...

    def gate_output(self, gate: GateSpec, stream: str, chunk: str) -> None: ...

    def gate_completed(self, outcome: GateOutcome) -> None: ...


class StreamSink:
    """Echo command output to text streams as it arrives.

    By default stdout chunks go to sys.stdout and stderr chunks to
    sys.stderr. Hook mode points both at stderr so stdout carries only
    the decision message.
    """

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self.out = out
        self.err = err

    def gate_started(self, gate: GateSpec) -> None:
        pass

    def gate_output(self, gate: GateSpec, stream: str, chunk: str) -> None:
        target = self.err or sys.stderr
        if stream == STDOUT:
            target = self.out or sys.stdout
        target.write(chunk)
        target.flush()

    def gate_completed(self, outcome: GateOutcome) -> None:
        pass


def notify(sink: Optional[GateEventSink], event: str, *args) -> None:
    """Deliver one event to a sink, isolating the caller from sink failures."""
    if sink is None:
        return
    try:
        getattr(sink, event)(*args)
    except Exception as e:
        logger.warning("Progress sink failed on %s: %s", event, e)
