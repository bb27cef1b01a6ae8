"""Decision payload for the controlling agent.

The agent reads one JSON object from stdout. An absent "decision" means
completion is permitted; "block" sends the agent back to work with the
reason attached.
"""

import json
import sys
from dataclasses import dataclass, field
from typing import Optional

from .gates.result import RunSummary
from .truncate import format_failure_context
from .ui.format import format_exit_code

BLOCK = "block"

# Emitted only if a failed summary carries no blocking failure.
UNATTRIBUTED_FAILURE = "Gate run failed without a blocking gate result."


@dataclass
class HookResponse:
    """Structured decision for the agent's stop hook."""

    decision: Optional[str] = None
    reason: Optional[str] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def blocks(self) -> bool:
        return self.decision == BLOCK

    def to_dict(self) -> dict:
        """Convert to dictionary, omitting unset fields."""
        result = {}
        if self.decision:
            result["decision"] = self.decision
        if self.reason is not None:
            result["reason"] = self.reason
        if self.warnings:
            result["warnings"] = list(self.warnings)
        return result

    def to_json(self) -> str:
        """Single-line JSON message."""
        return json.dumps(self.to_dict(), ensure_ascii=False)


def generate_hook_response(summary: RunSummary) -> HookResponse:
    """Turn a run summary into the agent decision.

    Only the first blocking failure is reported, with its stderr (never
    stdout) truncated into the reason.
    """
    warnings = list(summary.warnings)

    if summary.passed:
        return HookResponse(warnings=warnings)

    failure = summary.first_failure
    if failure is None:
        return HookResponse(decision=BLOCK, reason=UNATTRIBUTED_FAILURE, warnings=warnings)

    reason = (
        f"Gate '{failure.name}' failed (exit {format_exit_code(failure.exit_code)}):\n"
        f"{format_failure_context(failure.stderr)}"
    )
    return HookResponse(decision=BLOCK, reason=reason, warnings=warnings)


def block_response(reason: str) -> HookResponse:
    """Decision blocking completion for a reason outside any gate run."""
    return HookResponse(decision=BLOCK, reason=reason)


def output_hook_response(response: HookResponse, file=None) -> None:
    """Write the decision as one line of JSON (default: stdout)."""
    if file is None:
        file = sys.stdout
    file.write(response.to_json() + "\n")
    file.flush()
