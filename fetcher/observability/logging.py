"""Structured logging setup for the fetcher pipeline.

Pipeline modules log through ``structlog.get_logger()`` and bind
``component="fetcher"``; this module decides where those events go.
Applications that already configure structlog can skip it entirely.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog


if TYPE_CHECKING:
    from fetcher.config import FetcherSettings


REQUEST_ID_KEY = "request_id"

_SHARED_PROCESSORS: tuple[structlog.types.Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", key="ts"),
    structlog.processors.StackInfoRenderer(),
)


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg)
    return resolved


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Route fetcher log events to ``output``.

    Args:
        level: Minimum level, numeric or by name (``"DEBUG"``).
        output: Stream receiving rendered events.
        json_format: Render one JSON object per line; otherwise use the
            human-readable console renderer.

    Raises:
        ValueError: If ``level`` names no known logging level.
    """
    numeric_level = _resolve_level(level)

    renderer: structlog.types.Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=output.isatty())

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    # stdlib records (httpx, httpcore) share the stream and threshold
    logging.basicConfig(format="%(message)s", stream=output, level=numeric_level)


def configure_from_settings(
    settings: "FetcherSettings", output: TextIO = sys.stderr
) -> None:
    """Apply ``FETCHER_LOG_LEVEL`` and ``FETCHER_LOG_JSON`` from settings."""
    configure_logging(
        level=settings.log_level_value,
        output=output,
        json_format=settings.log_json,
    )


def get_logger(
    name: str | None = None, **initial: Any
) -> structlog.stdlib.BoundLogger:
    """Return a logger, optionally pre-bound with ``initial`` values.

    Args:
        name: Optional logger name.
        **initial: Key/value pairs bound to every event from this logger.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    if initial:
        logger = logger.bind(**initial)
    return logger


def bind_request_context(request_id: str) -> None:
    """Tag every following event in this context with ``request_id``."""
    structlog.contextvars.bind_contextvars(**{REQUEST_ID_KEY: request_id})


def clear_request_context() -> None:
    structlog.contextvars.unbind_contextvars(REQUEST_ID_KEY)
