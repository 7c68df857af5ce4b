"""structlog setup shared by the SRMS services and scripts.

Records are rendered as JSON on stderr so the reports the scripts print on
stdout stay machine readable. The level comes from ``SRMS_LOG_LEVEL`` and is
re-read by :func:`apply_log_level` once an env profile has been loaded.
"""

from __future__ import annotations

import logging
import os
import sys
from functools import lru_cache
from typing import Any

import structlog

LOGGER_NAME = "srms"
DEFAULT_LOG_LEVEL = "INFO"


def _resolve_level(value: str | None) -> int:
    level = logging.getLevelName((value or DEFAULT_LOG_LEVEL).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def apply_log_level(value: str | None = None) -> int:
    """Set the ``srms`` logger level from ``value`` or ``SRMS_LOG_LEVEL``."""

    level = _resolve_level(value if value is not None else os.getenv("SRMS_LOG_LEVEL"))
    logging.getLogger(LOGGER_NAME).setLevel(level)
    return level


@lru_cache(maxsize=1)
def _base_logger() -> structlog.stdlib.BoundLogger:
    logging.basicConfig(format="%(message)s", stream=sys.stderr)
    apply_log_level()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger(LOGGER_NAME)


def get_logger(**initial_context: Any) -> structlog.stdlib.BoundLogger:
    logger = _base_logger()
    if initial_context:
        return logger.bind(**initial_context)
    return logger


def log_event(
    logger: structlog.stdlib.BoundLogger,
    service: str,
    event: str,
    level: str = "warning",
    **extra: Any,
) -> None:
    """Emit ``event`` at ``level``; level and timestamp come from the processors."""

    log_method = getattr(logger, level.lower(), None)
    if not callable(log_method):
        log_method = logger.info
    log_method(event, service=service, **extra)
