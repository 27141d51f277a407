"""Structured logging configuration using structlog.

The diff report is written to stdout; every log line goes to stderr so the
two never interleave. JSON is the default rendering. Interactive terminals
get structlog's console renderer unless ``json_output`` is forced.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def setup_logging(level: str = "warning", json_output: bool | None = None) -> None:
    """Configure structlog processors, level filter and stderr sink."""
    log_level = getattr(logging, level.upper(), logging.WARNING)
    if json_output is None:
        json_output = not sys.stderr.isatty()

    renderer: Any = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Return a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


def bind_run(**values: object) -> None:
    """Bind per-run context (timeout, object count) to every later log line."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)
