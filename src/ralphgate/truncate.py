"""Head/tail truncation of captured command output.

Long output keeps its start (usually the first error) and its end
(usually the final failure summary), with a marker in between stating
how much was dropped.
"""

import math

from .common import HEAD_RATIO, MAX_FAILURE_CHARS

NO_OUTPUT = "No output captured."


def omission_marker(omitted: int) -> str:
    """Marker line placed between the kept head and tail."""
    return f"\n...<{omitted} chars omitted>...\n"


def truncate_output(text: str, max_chars: int = MAX_FAILURE_CHARS) -> str:
    """Truncate text to a character budget, keeping head and tail.

    Args:
        text: Text to truncate. Trailing whitespace is always trimmed.
        max_chars: Budget for kept characters (the marker is extra).

    Returns:
        The trimmed text if it fits, otherwise head + marker + tail.
        Empty string when the budget is not positive or the text is blank.
    """
    trimmed = text.rstrip()
    if max_chars <= 0 or not trimmed:
        return ""
    if len(trimmed) <= max_chars:
        return trimmed

    head_chars = max(1, math.floor(max_chars * HEAD_RATIO))
    tail_chars = max(0, max_chars - head_chars)
    omitted = len(trimmed) - head_chars - tail_chars

    head = trimmed[:head_chars]
    tail = trimmed[-tail_chars:] if tail_chars > 0 else ""
    return f"{head}{omission_marker(omitted)}{tail}"


def split_budget(
    stdout_len: int, stderr_len: int, budget: int = MAX_FAILURE_CHARS
) -> tuple[int, int]:
    """Split a character budget between stdout and stderr.

    Each stream first gets up to half. Budget one stream cannot use goes
    to the other; when both still overflow, the leftover is shared in
    proportion to how much of each remains untruncated.

    Returns:
        (stdout_budget, stderr_budget)
    """
    if stdout_len == 0 and stderr_len == 0:
        return 0, 0
    if stdout_len == 0:
        return 0, budget
    if stderr_len == 0:
        return budget, 0

    base = budget // 2
    stdout = min(stdout_len, base)
    stderr = min(stderr_len, base)
    remaining = budget - stdout - stderr

    if remaining > 0:
        stdout_left = stdout_len - stdout
        stderr_left = stderr_len - stderr
        if stdout_left == 0:
            stderr += remaining
        elif stderr_left == 0:
            stdout += remaining
        else:
            share = stdout_left / (stdout_left + stderr_left)
            stdout_extra = math.floor(share * remaining + 0.5)
            stdout += stdout_extra
            stderr += remaining - stdout_extra

    return stdout, stderr


def format_failure_context(
    stderr: str, stdout: str = "", budget: int = MAX_FAILURE_CHARS
) -> str:
    """Render captured output of a failed gate for display.

    Never returns an empty string for blank output: the reason shown to
    the agent must always say something.

    Args:
        stderr: Captured stderr.
        stdout: Captured stdout.
        budget: Total character budget shared by both streams.

    Returns:
        Truncated output, labelled per stream when both are present.
    """
    err = stderr.rstrip()
    out = stdout.rstrip()

    if not err and not out:
        return NO_OUTPUT
    if budget <= 0:
        return ""

    if err and out:
        out_budget, err_budget = split_budget(len(out), len(err), budget)
        return (
            f"STDERR:\n{truncate_output(err, err_budget)}\n\n"
            f"STDOUT:\n{truncate_output(out, out_budget)}"
        )

    return truncate_output(err or out, budget)
