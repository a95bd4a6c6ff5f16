"""Structured logging configuration.

This module initializes structlog with a stable JSON format.
Store and cache modules log named events with keyword fields.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

_CONFIGURED = False


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog processors and the minimum log level.

    Loggers resolve their configuration on first use, so calling this
    before the first logged event applies to every Shelf module.

    Args:
        level: Minimum stdlib level emitted by Shelf loggers.
    """
    global _CONFIGURED
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A lazily configured structlog logger.
    """
    if not _CONFIGURED:
        configure_logging()
    return structlog.get_logger(name)
