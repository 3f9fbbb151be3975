"""Structured logging for the ledger engine and the scheduler.

Console rendering in development, one JSON object per line in production.
Tick-scoped fields (``tick_id``, ``tick_at``) come from structlog contextvars
bound by the processor.
"""

import logging
import sys
from pathlib import Path

import structlog
from structlog.types import EventDict, Processor

from personal_ledger.config import Settings, get_settings


def _app_context(settings: Settings) -> Processor:
    app = settings.app_name
    environment = settings.environment.value

    def add_app_context(
        logger: logging.Logger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("app", app)
        event_dict.setdefault("environment", environment)
        return event_dict

    return add_app_context


def _upper_level(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["level"] = event_dict.get("level", method_name).upper()
    return event_dict


def _processors(settings: Settings) -> list[Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_format == "json":
        return [
            *shared,
            _upper_level,
            _app_context(settings),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        *shared,
        structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger. Call once at startup."""
    if settings is None:
        settings = get_settings()
    level = getattr(logging, settings.log_level.value)

    structlog.configure(
        processors=_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.log_file:
        _add_file_handler(settings.log_file, level)

    logging.getLogger("psycopg2").setLevel(max(level, logging.INFO))


def _add_file_handler(log_file: Path, level: int) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logging.getLogger().addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)
