"""
Structured logging setup for public-api-diff.

Configures **structlog** on top of the stdlib ``logging`` package so that the
pipeline's own events and any library log records share one renderer:
human-readable console output by default, JSON for CI log collectors.

    from public_api_diff.logging import setup_logging, get_logger

    setup_logging(level="DEBUG", log_format="json")
    log = get_logger(__name__)
    log.info("building_project", source="main~https://example.com/repo.git")

Logs go to stderr so that a report printed to stdout stays machine-readable.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Iterable

import structlog


def _base_processors(include_stacktrace: bool) -> Iterable[Any]:
    yield structlog.stdlib.add_log_level
    yield structlog.processors.TimeStamper(fmt="iso", utc=True)
    yield structlog.contextvars.merge_contextvars
    yield structlog.processors.StackInfoRenderer()
    if include_stacktrace:
        yield structlog.processors.format_exc_info
    yield structlog.processors.UnicodeDecoder()


def setup_logging(
    *,
    level: str | int = "INFO",
    log_format: str = "console",
    include_stacktrace: bool | None = None,
) -> None:
    """
    Configure structlog + stdlib logging. Safe to call more than once.

    Parameters
    ----------
    level: str|int
        Log level (e.g., "INFO").
    log_format: str
        "console" (default) or "json".
    include_stacktrace: bool
        Render exception tracebacks into events. Defaults to True for JSON
        and False for console output (the console renderer prints them).
    """
    log_format = log_format.lower()
    if include_stacktrace is None:
        include_stacktrace = log_format == "json"
    if isinstance(level, str):
        level = level.upper()

    processors = list(_base_processors(include_stacktrace))
    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty(), sort_keys=False)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[structlog.stdlib.add_logger_name, *processors],
        )
    )

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)


def bind_run_context(**kv: Any) -> None:
    """Bind run-scoped values (e.g. the compared sources) into every event."""
    structlog.contextvars.bind_contextvars(**kv)


def clear_run_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "setup_logging",
    "get_logger",
    "bind_run_context",
    "clear_run_context",
]
