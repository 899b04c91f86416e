"""Structured logging configuration."""

import logging
import sys
from collections.abc import Callable, Sequence
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from tilerpack.adapters.config.settings import LoggingSettings


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structured logging."""
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    normalized_level = log_level.upper()
    if normalized_level not in valid_levels:
        logging.warning(
            f"Invalid log level '{log_level}', defaulting to INFO. "
            f"Valid levels: {', '.join(sorted(valid_levels))}"
        )
        normalized_level = "INFO"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, normalized_level),
    )

    processors: Sequence[Callable[[WrappedLogger, str, EventDict], Any]]
    if json_output:
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, normalized_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: LoggingSettings) -> None:
    """Configure logging from the TILER_LOG_* settings."""
    configure_logging(settings.level, json_output=settings.json_output)

