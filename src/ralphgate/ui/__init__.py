"""UI module for ralph-gate.

This module provides read-only renderings of run summaries and history.
All UI functions are pure and never execute gates or write files.

Usage:
    from ralphgate.ui import format_console_output, ColorMode
"""

from .format import (
    ColorMode,
    Column,
    colorize,
    format_console_output,
    format_exit_code,
    format_result_line,
    render_json,
    render_table,
    strip_ansi,
)

__all__ = [
    "ColorMode",
    "Column",
    "colorize",
    "format_console_output",
    "format_exit_code",
    "format_result_line",
    "render_json",
    "render_table",
    "strip_ansi",
]
