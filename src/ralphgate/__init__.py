"""ralph-gate: verification gates for coding agents.

Runs an ordered list of shell commands before an agent is allowed to
finish, and turns the outcomes into a single pass/block decision.
"""

from .gates import (
    ExecutionContext,
    GateOutcome,
    GateRunner,
    GateSpec,
    RunSummary,
    run_gates,
)
from .config import ConfigError, GateConfig, load_config
from .hook import HookResponse, generate_hook_response
from .truncate import format_failure_context, truncate_output
from .ui import format_console_output

__version__ = "0.1.0"

__all__ = [
    "ExecutionContext",
    "GateOutcome",
    "GateRunner",
    "GateSpec",
    "RunSummary",
    "run_gates",
    "ConfigError",
    "GateConfig",
    "load_config",
    "HookResponse",
    "generate_hook_response",
    "format_failure_context",
    "truncate_output",
    "format_console_output",
]
