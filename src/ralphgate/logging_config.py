"""Logging configuration for ralph-gate.

Logs always go to stderr: in hook mode stdout carries exactly one JSON
decision message and nothing else.

Usage:
    from ralphgate.logging_config import configure_logging

    configure_logging(verbose=args.verbose)
"""

import logging
import os
import sys

# Environment configuration
LOG_LEVEL_ENV = "RALPH_GATE_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = "ralph-gate %(levelname)s %(name)s: %(message)s"


def resolve_level(verbose: bool = False) -> int:
    """Pick the log level from --verbose or RALPH_GATE_LOG_LEVEL."""
    if verbose:
        return logging.DEBUG
    name = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


class _RalphGateHandler(logging.StreamHandler):
    """Stream handler owned by configure_logging."""


def configure_logging(verbose: bool = False, stream=None) -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    Safe to call more than once; the previous handler is replaced.
    """
    logger = logging.getLogger("ralphgate")
    for handler in list(logger.handlers):
        if isinstance(handler, _RalphGateHandler):
            logger.removeHandler(handler)

    handler = _RalphGateHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(verbose))
    logger.propagate = False
    return logger
