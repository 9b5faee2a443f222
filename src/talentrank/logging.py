"""Logging utilities for the matching core."""

from __future__ import annotations

import logging
import sys
from typing import Literal

import structlog

LogFormat = Literal["json", "console"]


def _stderr_logger(*args: object) -> structlog.PrintLogger:
    # Resolved per logger, so a swapped or restored sys.stderr is always honoured.
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(level: str = "INFO", *, fmt: LogFormat = "json") -> None:
    """Configure structlog with JSON (default) or console output on stderr."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=log_level, format="%(message)s")

    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer(sort_keys=True)
    )

    structlog.configure(
        logger_factory=_stderr_logger,
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=False,
    )


def bind_tenant(tenant_id: str, **extra: object) -> None:
    """Attach tenant (and optional job/run ids) to every subsequent log line."""
    structlog.contextvars.bind_contextvars(tenant_id=tenant_id, **extra)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
