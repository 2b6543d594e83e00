"""Structured logging setup (structlog on top of the stdlib "gitwrap" logger).

Library use is silent: the "gitwrap" logger only has a NullHandler until
configure_logging() attaches a stderr handler. Applications that configure
stdlib logging themselves receive gitwrap's records through propagation.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, TextIO

import structlog

LOGGER_NAME = "gitwrap"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())

_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(),
]


def configure_logging(log_level: str = "WARNING", stream: Optional[TextIO] = None) -> None:
    """Send gitwrap's JSON log lines to stream (stderr by default).

    Calling it again replaces the previous handler.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Destination, defaults to sys.stderr so stdout stays usable
            for --json output
    """
    level = log_level.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {log_level!r}, expected one of {', '.join(LOG_LEVELS)}")

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger, e.g. ``log.debug("repo_found", path=p)``."""
    return structlog.wrap_logger(
        logging.getLogger(name or LOGGER_NAME),
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
    )
