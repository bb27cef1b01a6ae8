"""Common utilities and constants for ralph-gate.

This module defines contract-level constants and helpers used across all components.
"""

import os
from datetime import datetime, timezone

# Gate defaults applied by the config loader
DEFAULT_ORDER = 100

# Character budget for failure context shown to the agent
MAX_FAILURE_CHARS = 4000

# Share of a truncation budget kept from the start of the text
HEAD_RATIO = 0.6


def utc_now_z() -> str:
    """Return current UTC time in RFC3339 format with millisecond precision.

    Returns:
        ISO8601/RFC3339 timestamp ending in Z (e.g., "2025-02-02T12:00:00.123Z").
    """
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def default_shell() -> str:
    """Resolve the shell gate commands run under.

    Uses $SHELL when set and non-empty, otherwise the platform default.
    """
    shell = os.environ.get("SHELL", "")
    if shell:
        return shell
    if os.name == "nt":
        return os.environ.get("COMSPEC", "cmd.exe")
    return "/bin/sh"


def default_output_path() -> str:
    """Return the per-process results file name used when none is configured."""
    return f"gate-results-{os.getpid()}.json"
