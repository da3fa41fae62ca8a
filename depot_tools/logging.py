"""Structured JSON logging for the extraction pipeline, HTTP glue and API.

Events are snake_case names with keyword context: ``pdf_fetched`` carries the
``url`` and ``size`` of a download, ``wheel_card_extracted`` the values picked
for each gear side.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Route structlog through stdlib logging at ``level`` (``LOG_LEVEL``).

    Each line is one JSON object with the logger name, level and an ISO
    timestamp. Events below ``level`` are dropped before rendering.
    """
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Return a lazy logger; modules bind theirs at import, before configuration."""
    return structlog.get_logger(name)
