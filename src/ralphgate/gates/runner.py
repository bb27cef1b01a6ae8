"""Gate runner for executing an ordered list of gates.

The runner executes gates one at a time in the order given, applies
fail-fast skipping, and aggregates outcomes into a RunSummary.
"""

import logging
import time
from typing import Optional, Sequence

from ..common import utc_now_z
from .events import GateEventSink, StreamSink, notify
from .executor import execute
from .result import ExecutionContext, GateOutcome, GateSpec, RunSummary

logger = logging.getLogger(__name__)


class GateRunner:
    """Executes gates and produces a run summary."""

    def __init__(
        self,
        context: Optional[ExecutionContext] = None,
        sink: Optional[GateEventSink] = None,
    ):
        """Initialize the runner.

        Args:
            context: Execution context shared by every gate (default: snapshot
                of the current process environment).
            sink: Optional receiver for live progress events (default: echo
                output to stdout/stderr when the context asks to stream).
        """
        self.context = context or ExecutionContext.from_environ()
        if sink is None and self.context.stream:
            sink = StreamSink()
        self.sink = sink

    def run_gate(self, gate: GateSpec) -> GateOutcome:
        """Run a single gate."""
        return execute(gate, self.context, self.sink)

    def run(self, gates: Sequence[GateSpec], fail_fast: bool = True) -> RunSummary:
        """Run gates in order.

        Gates are not re-sorted. Once a blocking gate fails under fail-fast,
        later blocking gates are skipped; non-blocking gates always run.

        Args:
            gates: Gates in execution order.
            fail_fast: Skip remaining blocking gates after a blocking failure.

        Returns:
            RunSummary with one outcome per gate.
        """
        results: list[GateOutcome] = []
        warnings: list[str] = []
        first_failure: Optional[GateOutcome] = None

        timestamp = utc_now_z()
        start = time.monotonic()

        for gate in gates:
            if fail_fast and first_failure is not None and gate.blocking:
                outcome = GateOutcome.skipped_gate(gate)
                logger.debug(
                    "Skipping gate %s after failure of %s", gate.name, first_failure.name
                )
                notify(self.sink, "gate_completed", outcome)
                results.append(outcome)
                continue

            outcome = self.run_gate(gate)
            results.append(outcome)

            if not outcome.passed:
                if outcome.blocking:
                    if first_failure is None:
                        first_failure = outcome
                else:
                    warnings.append(outcome.name)

        total_duration_ms = int((time.monotonic() - start) * 1000)

        summary = RunSummary(
            passed=first_failure is None,
            timestamp=timestamp,
            total_duration_ms=total_duration_ms,
            results=results,
            first_failure=first_failure,
            warnings=warnings,
        )
        logger.info(
            "Gate run %s: %d gates, %d skipped, %d warnings (%dms)",
            "passed" if summary.passed else "failed",
            len(results),
            summary.skipped_count,
            len(warnings),
            total_duration_ms,
        )
        return summary


def run_gates(
    gates: Sequence[GateSpec],
    fail_fast: bool = True,
    context: Optional[ExecutionContext] = None,
    sink: Optional[GateEventSink] = None,
) -> RunSummary:
    """Convenience function to run a list of gates.

    Args:
        gates: Gates in execution order.
        fail_fast: Skip remaining blocking gates after a blocking failure.
        context: Execution context (default: current process environment).
        sink: Optional receiver for live progress events.

    Returns:
        RunSummary.
    """
    runner = GateRunner(context, sink)
    return runner.run(gates, fail_fast)


def run_gate(
    gate: GateSpec,
    context: Optional[ExecutionContext] = None,
    sink: Optional[GateEventSink] = None,
) -> GateOutcome:
    """Convenience function to run a single gate."""
    runner = GateRunner(context, sink)
    return runner.run_gate(gate)
