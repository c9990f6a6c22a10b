"""
structlog setup.

Console output in development, JSON lines when LOG_FORMAT=json.
Call setup_logging() once at startup; modules use
structlog.get_logger(__name__).
"""

import logging
import sys

import structlog

from tuition.core.config import settings


def _level_name_to_int(level: str) -> int:
    return getattr(logging, (level or "INFO").upper(), logging.INFO)


def setup_logging() -> None:
    """Configure stdlib logging and structlog processors."""
    level = _level_name_to_int(settings.LOG_LEVEL)
    log_format = (settings.LOG_FORMAT or "console").lower()

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        (structlog.processors.JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer()),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

