"""Centralized error handling for the ralph-gate CLI.

This module provides:
- Standard error codes
- Error envelope format for --json output
- Helper functions for consistent error reporting

Gate execution never raises; these errors cover the surfaces around it
(configuration, results persistence, history, arguments).
"""

import json
import sys
from dataclasses import dataclass, field
from typing import Optional


# =============================================================================
# Error Codes
# =============================================================================

# Config errors
CONFIG_INVALID = "CONFIG_INVALID"

# Gate errors
GATE_NOT_FOUND = "GATE_NOT_FOUND"

# Persistence errors
RESULTS_WRITE_FAILED = "RESULTS_WRITE_FAILED"
HISTORY_NOT_FOUND = "HISTORY_NOT_FOUND"

# Input errors
INVALID_ARGUMENT = "INVALID_ARGUMENT"

# Generic errors
INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Error Envelope
# =============================================================================

# JSON Schema of the --json error envelope
ERROR_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "ralph-gate error",
    "type": "object",
    "required": ["error"],
    "properties": {
        "error": {
            "type": "object",
            "required": ["code", "message", "hints", "details"],
            "properties": {
                "code": {"type": "string", "pattern": "^[A-Z][A-Z_]*$"},
                "message": {"type": "string", "minLength": 1},
                "hints": {"type": "array", "items": {"type": "string"}},
                "details": {"type": "object"},
            },
        }
    },
}


@dataclass
class RalphGateError:
    """Structured error for JSON output.

    Attributes:
        code: Machine-readable error code.
        message: Human-readable error message.
        hints: Actionable suggestions for resolving the error.
        details: Context-specific error details.
    """

    code: str
    message: str
    hints: list[str] = field(default_factory=list)
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to error envelope dict."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "hints": self.hints,
                "details": self.details,
            }
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def print_json(self, file=None) -> None:
        """Print error as JSON to file (default: stderr)."""
        if file is None:
            file = sys.stderr
        print(self.to_json(), file=file)

    def print_text(self, file=None) -> None:
        """Print error as human-readable text to file (default: stderr)."""
        if file is None:
            file = sys.stderr
        print(f"Error: {self.message}", file=file)
        for hint in self.hints:
            print(f"  Hint: {hint}", file=file)


# =============================================================================
# Factory Functions
# =============================================================================


def config_invalid(message: str, path: Optional[str] = None) -> RalphGateError:
    """Create error for a config file that failed to load."""
    return RalphGateError(
        code=CONFIG_INVALID,
        message=message,
        hints=[
            "Check gate.config.json (or .gaterc.json / .gaterc) is valid JSON",
            "Every gate needs a non-empty 'name' and 'command'",
        ],
        details={"path": path} if path else {},
    )


def gate_not_found(name: str, available: Optional[list[str]] = None) -> RalphGateError:
    """Create error for an unknown gate name."""
    hints = ["Run: ralph-gate --dry-run"]
    if available:
        hints.append(f"Available gates: {', '.join(available)}")
    return RalphGateError(
        code=GATE_NOT_FOUND,
        message=f"Gate not found: {name}",
        hints=hints,
        details={"gate": name},
    )


def results_write_failed(path: str, reason: str) -> RalphGateError:
    """Create error for a results file that could not be written."""
    return RalphGateError(
        code=RESULTS_WRITE_FAILED,
        message=f"Unable to write results file: {path} ({reason})",
        hints=[
            "Check the directory exists and is writable",
            "Set 'outputPath' in the config to a writable location",
        ],
        details={"path": path, "reason": reason},
    )


def history_not_found(path: str) -> RalphGateError:
    """Create error for a missing run history."""
    return RalphGateError(
        code=HISTORY_NOT_FOUND,
        message=f"Run history does not exist: {path}",
        hints=[f"Run: ralph-gate run --history-dir {path}"],
        details={"path": path},
    )


def invalid_argument(arg_name: str, value: str, reason: str = "") -> RalphGateError:
    """Create error for invalid argument."""
    msg = f"Invalid argument '{arg_name}': {value}"
    if reason:
        msg += f" ({reason})"
    return RalphGateError(
        code=INVALID_ARGUMENT,
        message=msg,
        hints=["Run: ralph-gate --help"],
        details={"argument": arg_name, "value": value, "reason": reason},
    )


def internal_error(message: str, details: Optional[dict] = None) -> RalphGateError:
    """Create internal error."""
    return RalphGateError(
        code=INTERNAL_ERROR,
        message=f"Internal error: {message}",
        hints=["Please report this issue"],
        details=details or {},
    )


# =============================================================================
# Output Helper
# =============================================================================


def print_error(
    error: RalphGateError,
    json_mode: bool = False,
    file=None,
) -> None:
    """Print error in appropriate format.

    Args:
        error: The error to print.
        json_mode: If True, print as JSON envelope. If False, print as text.
        file: Output file (default: stderr).
    """
    if json_mode:
        error.print_json(file)
    else:
        error.print_text(file)
