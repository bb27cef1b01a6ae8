"""Formatting utilities for ralph-gate console output.

All functions are pure: they return strings and never write anywhere.

Key design principles:
- Stable ordering: gate lines follow run order, history rows follow the
  order they are given
- Optional color: all color can be disabled with --no-color
- Non-TTY safe: color is only applied automatically when stdout is a TTY
- Same text with or without color: only ANSI codes differ
"""

import json
import re
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from ..gates.result import GateOutcome, RunSummary


class ColorMode(Enum):
    """Color output mode."""

    AUTO = "auto"  # Color if TTY, no color otherwise
    ALWAYS = "always"  # Always use color
    NEVER = "never"  # Never use color


_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "gray": "\033[90m",
}

# Status glyphs
PASS_GLYPH = "✓"  # check mark
FAIL_GLYPH = "✗"  # ballot x
SKIP_GLYPH = "⊘"  # circled slash

ALL_PASSED = "All blocking gates passed."
BLOCKING_FAILED = "Blocking gate failed."


def _should_color(mode: ColorMode) -> bool:
    """Determine if output should be colored."""
    if mode == ColorMode.NEVER:
        return False
    if mode == ColorMode.ALWAYS:
        return True
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def colorize(text: str, color: str, mode: ColorMode = ColorMode.AUTO) -> str:
    """Apply color to text if color mode allows.

    Args:
        text: Text to colorize.
        color: Color name (red, green, yellow, gray, bold).
        mode: Color mode (auto, always, never).

    Returns:
        Colored text if mode allows, otherwise plain text.
    """
    code = _COLORS.get(color, "")
    if not code or not _should_color(mode):
        return text
    return f"{code}{text}{_COLORS['reset']}"


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def render_json(obj: Any, *, indent: Optional[int] = 2, sort_keys: bool = False) -> str:
    """Render object as JSON.

    Objects exposing to_dict() are serialized through it.
    """
    return json.dumps(
        obj,
        indent=indent,
        sort_keys=sort_keys,
        ensure_ascii=False,
        default=_json_default,
    )


def _json_default(obj: Any) -> Any:
    """JSON serialization fallback for non-standard types."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return str(obj)


def format_result_line(result: GateOutcome, color_mode: ColorMode = ColorMode.AUTO) -> str:
    """Format one gate outcome as a single status line.

    Example: "✗ typecheck (exit 2, 1534ms)"
    """
    if result.skipped:
        glyph, color = SKIP_GLYPH, "gray"
    elif result.passed:
        glyph, color = PASS_GLYPH, "green"
    else:
        glyph, color = FAIL_GLYPH, "red"

    parts = []
    if result.skipped:
        parts.append("skipped")
    elif not result.passed:
        parts.append(f"exit {format_exit_code(result.exit_code)}")
    parts.append(f"{result.duration_ms}ms")

    return f"{colorize(glyph, color, color_mode)} {result.name} ({', '.join(parts)})"


def format_exit_code(exit_code: Optional[int]) -> str:
    """Render an exit code, or "null" when none is available."""
    return "null" if exit_code is None else str(exit_code)


def format_console_output(
    summary: RunSummary, color_mode: ColorMode = ColorMode.AUTO
) -> str:
    """Render a run summary for a human reading the console.

    One line per gate in run order, an optional warnings line, and a
    final verdict line.
    """
    lines = [format_result_line(r, color_mode) for r in summary.results]

    if summary.warnings:
        lines.append(colorize(f"Warnings: {', '.join(summary.warnings)}", "yellow", color_mode))

    if summary.passed:
        lines.append(colorize(ALL_PASSED, "green", color_mode))
    else:
        lines.append(colorize(BLOCKING_FAILED, "red", color_mode))

    return "\n".join(lines)


@dataclass
class Column:
    """Table column definition."""

    name: str
    header: str
    align: str = "left"  # "left" or "right"


def render_table(
    rows: Sequence[dict[str, Any]],
    columns: Sequence[Column],
    *,
    color_mode: ColorMode = ColorMode.AUTO,
) -> str:
    """Render rows as a plain aligned table, in the order given.

    Widths are calculated from content and capped at 60 chars.
    """
    if not rows:
        return ""

    widths = []
    for col in columns:
        width = len(col.header)
        for row in rows:
            width = max(width, len(str(row.get(col.name, ""))))
        widths.append(min(width, 60))

    def _line(values: list[str]) -> str:
        cells = []
        for value, col, width in zip(values, columns, widths):
            if len(value) > width:
                value = value[: width - 3] + "..."
            cells.append(value.rjust(width) if col.align == "right" else value.ljust(width))
        return "  ".join(cells).rstrip()

    lines = [colorize(_line([c.header for c in columns]), "bold", color_mode)]
    lines.append("  ".join("-" * w for w in widths))
    for row in rows:
        lines.append(_line([str(row.get(c.name, "")) for c in columns]))
    return "\n".join(lines)
