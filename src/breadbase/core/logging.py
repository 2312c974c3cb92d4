"""structlog configuration.

Log events are JSON in deployed environments and colored console lines
in development. Request middleware binds a correlation ID, and schema
operations bind the table they work on, through structlog's contextvars
so every event logged inside carries them.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from breadbase.core.config import Settings, get_settings

DEFAULT_LOGGER_NAME = "breadbase"

# Standard-library loggers that follow the configured level
LIBRARY_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "alembic", "sqlalchemy.engine")


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["logger"] = getattr(logger, "name", None) or DEFAULT_LOGGER_NAME
    return event_dict


def event_to_message(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Emit the event text under ``message``, as log collectors expect."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def build_processors(settings: Settings) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.is_development or settings.log_format == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            event_to_message,
            structlog.processors.JSONRenderer(),
        ]
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the standard-library loggers it shares output with."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=not settings.is_development,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    for name in LIBRARY_LOGGERS:
        # SQL echo is governed by db_echo, not the log level
        library_level = logging.WARNING if name == "sqlalchemy.engine" else level
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name or DEFAULT_LOGGER_NAME)


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind values to every event logged inside the block.

    Example:
        with log_context(table_name="products"):
            logger.info("Altering table")
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
