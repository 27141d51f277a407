"""Observability helpers (structured logging)."""

from kubedrift.observability.logging import bind_run, get_logger, setup_logging

__all__ = ["bind_run", "get_logger", "setup_logging"]
