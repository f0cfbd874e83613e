"""Structured logging setup.

The engine only logs diagnostics: which runtime was selected, load failures
and per-call fallbacks. Nothing here changes a calculation result.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from paycalc.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None):
    """Configure stdlib logging and structlog, returning a bound logger.

    Log level comes from ``PAYCALC_LOG_LEVEL`` (default INFO). Output goes to
    stdout as JSON, or as aligned console text when ``PAYCALC_LOG_JSON`` is
    false.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger().bind(service=settings.service_name)
