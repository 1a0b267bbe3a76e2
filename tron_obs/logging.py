"""
Structured Logging (structlog).

Engine components bind tool_id, execution_id and requester_id on their
loggers. Composite runs additionally push ``composite_execution_id`` into
the context so every nested step call logs it.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.contextvars import bound_contextvars, merge_contextvars
from structlog.types import Processor

from tron_config.settings import Settings

# Chatty third-party loggers used by built-in tools
_QUIET_LOGGERS = ("httpx", "httpcore")


def _service_info(settings: Settings) -> Processor:
    def add_service_info(logger: Any, method_name: str, event_dict: dict) -> dict:
        event_dict.setdefault("service", settings.OTEL_SERVICE_NAME)
        event_dict.setdefault("environment", settings.ENVIRONMENT)
        return event_dict

    return add_service_info


def setup_logging(settings: Settings) -> None:
    """
    Configure structlog over stdlib logging.

    Output format: JSON (default) or console text for development.
    """
    level = settings.LOG_LEVEL.upper()
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLevelName(level)))

    processors: list[Processor] = [
        merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _service_info(settings),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind values to every log line emitted inside the block (task-local)."""
    with bound_contextvars(**values):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get configured logger."""
    return structlog.get_logger(name)
