"""Persistence of run summaries as JSON results files.

The results file is written before any decision reaches the agent, so a
crash after the run still leaves a complete record behind.
"""

import json
import logging
from pathlib import Path

from .common import utc_now_z
from .gates.result import RunSummary

logger = logging.getLogger(__name__)


_OUTCOME_SCHEMA = {
    "type": "object",
    "required": [
        "name",
        "passed",
        "exit_code",
        "stdout",
        "stderr",
        "duration_ms",
        "skipped",
        "blocking",
    ],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "passed": {"type": "boolean"},
        "exit_code": {"type": ["integer", "null"]},
        "stdout": {"type": "string"},
        "stderr": {"type": "string"},
        "duration_ms": {"type": "integer", "minimum": 0},
        "skipped": {"type": "boolean"},
        "blocking": {"type": "boolean"},
    },
}

# JSON Schema of the results file
SUMMARY_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "ralph-gate run summary",
    "type": "object",
    "required": [
        "passed",
        "timestamp",
        "total_duration_ms",
        "results",
        "first_failure",
        "warnings",
    ],
    "properties": {
        "passed": {"type": "boolean"},
        "timestamp": {"type": "string"},
        "total_duration_ms": {"type": "integer", "minimum": 0},
        "results": {"type": "array", "items": _OUTCOME_SCHEMA},
        "first_failure": {"anyOf": [{"type": "null"}, _OUTCOME_SCHEMA]},
        "warnings": {"type": "array", "items": {"type": "string"}},
    },
}


def empty_summary(passed: bool) -> RunSummary:
    """Summary of a run that executed no gates."""
    return RunSummary(passed=passed, timestamp=utc_now_z())


def write_results_file(summary: RunSummary, output_path: Path) -> Path:
    """Write the complete summary as indented JSON.

    Args:
        summary: Summary to persist.
        output_path: Destination file.

    Returns:
        Path written.

    Raises:
        OSError: If the file cannot be written.
    """
    path = Path(output_path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(summary.to_dict(), f, indent=2, ensure_ascii=False)
        f.write("\n")
    logger.debug("Wrote results file %s", path)
    return path


def load_results_file(path: Path) -> RunSummary:
    """Load a results file written by write_results_file."""
    with open(path, "r", encoding="utf-8") as f:
        return RunSummary.from_dict(json.load(f))
