"""Gate execution for ralph-gate.

The gate system runs an ordered list of shell commands, classifies each
outcome, and aggregates them into a single run summary.
"""

from .result import ExecutionContext, GateOutcome, GateSpec, RunSummary
from .events import GateEventSink, StreamSink
from .executor import execute
from .runner import GateRunner, run_gate, run_gates

__all__ = [
    "ExecutionContext",
    "GateOutcome",
    "GateSpec",
    "RunSummary",
    "GateEventSink",
    "StreamSink",
    "execute",
    "GateRunner",
    "run_gate",
    "run_gates",
]
