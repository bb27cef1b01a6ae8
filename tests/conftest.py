"""Shared fixtures for ralph-gate tests."""

import json
import shlex
import sys
from pathlib import Path

import pytest

from ralphgate.gates.result import ExecutionContext


def python_command(code: str) -> str:
    """Shell command running a Python snippet with the test interpreter."""
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


@pytest.fixture
def py_cmd():
    """Build a shell command that runs a Python snippet."""
    return python_command


@pytest.fixture
def context(tmp_path: Path) -> ExecutionContext:
    """Execution context rooted in a temporary directory."""
    return ExecutionContext.from_environ(cwd=tmp_path)


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a gate config into the temporary directory."""

    def _write(data, filename: str = "gate.config.json") -> Path:
        path = tmp_path / filename
        if isinstance(data, str):
            path.write_text(data)
        else:
            path.write_text(json.dumps(data))
        return path

    return _write
