"""Run a single gate command as a child process.

The executor never raises for command-level problems. A non-zero exit,
a process killed by a signal, or a command that cannot be launched at
all are all reported inside the returned GateOutcome.
"""

import codecs
import logging
import os
import subprocess
import threading
import time
from typing import IO, Optional

from .events import STDERR, STDOUT, GateEventSink, notify
from .result import ExecutionContext, GateOutcome, GateSpec

logger = logging.getLogger(__name__)

# Bytes read from a pipe per chunk
READ_CHUNK_SIZE = 4096


class _StreamReader(threading.Thread):
    """Drain one pipe to completion, forwarding each decoded chunk."""

    def __init__(
        self,
        gate: GateSpec,
        stream_name: str,
        pipe: IO[bytes],
        sink: Optional[GateEventSink],
    ):
        super().__init__(name=f"gate-{gate.name}-{stream_name}", daemon=True)
        self.gate = gate
        self.stream_name = stream_name
        self.pipe = pipe
        self.sink = sink
        self.chunks: list[str] = []

    def run(self) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            for data in iter(lambda: self.pipe.read1(READ_CHUNK_SIZE), b""):
                self._push(decoder.decode(data))
            self._push(decoder.decode(b"", final=True))
        finally:
            self.pipe.close()

    def _push(self, text: str) -> None:
        if not text:
            return
        self.chunks.append(text)
        notify(self.sink, "gate_output", self.gate, self.stream_name, text)

    @property
    def text(self) -> str:
        return "".join(self.chunks)


def _popen(command: str, context: ExecutionContext) -> subprocess.Popen:
    """Launch a command through the context's shell."""
    executable = context.shell
    if os.name == "nt":
        # cmd.exe is resolved by subprocess itself; an explicit executable
        # replaces COMSPEC rather than wrapping the command.
        executable = None
    return subprocess.Popen(
        command,
        shell=True,
        executable=executable,
        cwd=str(context.cwd),
        env=dict(context.env),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )


def execute(
    gate: GateSpec,
    context: ExecutionContext,
    sink: Optional[GateEventSink] = None,
) -> GateOutcome:
    """Run one gate and classify the result.

    Only the exit code decides: 0 passes, anything else fails. Output on
    stderr is captured but never treated as a failure signal.

    Args:
        gate: Gate to run.
        context: Shell, working directory and environment to run under.
        sink: Optional receiver for live progress events.

    Returns:
        GateOutcome with the full captured stdout/stderr.
    """
    notify(sink, "gate_started", gate)
    logger.debug("Running gate %s: %s", gate.name, gate.command)

    start = time.monotonic()
    try:
        proc = _popen(gate.command, context)
    except (OSError, ValueError) as e:
        # ValueError: the command holds a NUL byte and cannot reach exec.
        logger.debug("Gate %s could not be launched: %s", gate.name, e)
        return _finalize(gate, start, None, "", str(e), sink)

    readers = [
        _StreamReader(gate, STDOUT, proc.stdout, sink),
        _StreamReader(gate, STDERR, proc.stderr, sink),
    ]
    for reader in readers:
        reader.start()

    # No timeout: a gate runs until its command exits on its own.
    returncode = proc.wait()
    for reader in readers:
        reader.join()

    # A negative return code means the process was killed by that signal.
    exit_code = returncode if returncode >= 0 else None
    if exit_code is None:
        logger.debug("Gate %s terminated by signal %d", gate.name, -returncode)

    stdout, stderr = (reader.text for reader in readers)
    return _finalize(gate, start, exit_code, stdout, stderr, sink)


def _finalize(
    gate: GateSpec,
    start: float,
    exit_code: Optional[int],
    stdout: str,
    stderr: str,
    sink: Optional[GateEventSink],
) -> GateOutcome:
    """Build the one outcome for a gate and announce it."""
    outcome = GateOutcome(
        name=gate.name,
        passed=exit_code == 0,
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
        duration_ms=max(0, int((time.monotonic() - start) * 1000)),
        skipped=False,
        blocking=gate.blocking,
    )
    logger.debug(
        "Gate %s finished: passed=%s exit=%s (%dms)",
        gate.name,
        outcome.passed,
        exit_code,
        outcome.duration_ms,
    )
    notify(sink, "gate_completed", outcome)
    return outcome
