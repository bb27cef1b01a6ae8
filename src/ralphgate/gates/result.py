"""Gate input and result types.

Defines the gate definition consumed by the runner, the execution context
shared by every gate in a run, and the structured output of a run.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..common import DEFAULT_ORDER, default_shell


@dataclass(frozen=True)
class GateSpec:
    """A single gate: a named shell command and its classification."""

    name: str
    command: str
    order: int = DEFAULT_ORDER
    blocking: bool = True
    description: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Gate is missing required field: name.")
        if not isinstance(self.command, str) or not self.command.strip():
            raise ValueError(f"Gate '{self.name}' is missing required field: command.")

    def to_dict(self) -> dict:
        """Convert to dictionary, omitting an empty description."""
        result = {
            "name": self.name,
            "command": self.command,
            "order": self.order,
            "blocking": self.blocking,
        }
        if self.description:
            result["description"] = self.description
        return result


@dataclass(frozen=True)
class ExecutionContext:
    """Everything a gate command inherits from the caller.

    Captured once per run and shared read-only by every gate.
    """

    shell: str
    cwd: Path
    env: Mapping[str, str]
    stream: bool = False

    @classmethod
    def from_environ(
        cls,
        shell: Optional[str] = None,
        cwd: Optional[Path] = None,
        stream: bool = False,
    ) -> "ExecutionContext":
        """Snapshot the current process environment and working directory.

        Args:
            shell: Shell to run commands under (default: $SHELL or platform default).
            cwd: Working directory (default: current directory).
            stream: Echo command output live while it runs.
        """
        return cls(
            shell=shell or default_shell(),
            cwd=Path(cwd) if cwd is not None else Path.cwd(),
            env=MappingProxyType(dict(os.environ)),
            stream=stream,
        )


@dataclass(frozen=True)
class GateOutcome:
    """Result of running (or skipping) one gate.

    exit_code is None when no exit code is available: the process could
    not be launched, was killed by a signal, or the gate was skipped.
    """

    name: str
    passed: bool
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    skipped: bool = False
    blocking: bool = True

    @classmethod
    def skipped_gate(cls, gate: GateSpec) -> "GateOutcome":
        """Placeholder outcome for a gate suppressed by fail-fast."""
        return cls(name=gate.name, passed=True, skipped=True, blocking=gate.blocking)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "passed": self.passed,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "duration_ms": self.duration_ms,
            "skipped": self.skipped,
            "blocking": self.blocking,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GateOutcome":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            passed=data["passed"],
            exit_code=data.get("exit_code"),
            stdout=data.get("stdout", ""),
            stderr=data.get("stderr", ""),
            duration_ms=data.get("duration_ms", 0),
            skipped=data.get("skipped", False),
            blocking=data.get("blocking", True),
        )


@dataclass
class RunSummary:
    """Result of running an ordered list of gates.

    This is the terminal artifact of a run: it is persisted, then rendered
    for the console or turned into a decision for the agent.
    """

    passed: bool
    timestamp: str
    total_duration_ms: int = 0
    results: list[GateOutcome] = field(default_factory=list)
    first_failure: Optional[GateOutcome] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "passed": self.passed,
            "timestamp": self.timestamp,
            "total_duration_ms": self.total_duration_ms,
            "results": [r.to_dict() for r in self.results],
            "first_failure": (
                self.first_failure.to_dict() if self.first_failure else None
            ),
            "warnings": list(self.warnings),
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> "RunSummary":
        """Create from dictionary."""
        first = data.get("first_failure")
        return cls(
            passed=data["passed"],
            timestamp=data["timestamp"],
            total_duration_ms=data.get("total_duration_ms", 0),
            results=[GateOutcome.from_dict(r) for r in data.get("results", [])],
            first_failure=GateOutcome.from_dict(first) if first else None,
            warnings=list(data.get("warnings", [])),
        )
