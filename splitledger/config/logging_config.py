"""
Logging Configuration

structlog is configured once, when the splitledger package is imported,
so every module's logger renders the same JSON lines whichever module
is imported first.
"""

import logging
from typing import Optional

import structlog
from pydantic import ValidationError

from splitledger.config.settings import get_settings


def resolve_log_level() -> int:
    """Configured level, or INFO when the settings don't validate."""
    try:
        name = get_settings().app.log_level
    except ValidationError:
        return logging.INFO
    return getattr(logging, name, logging.INFO)


def configure_logging(level: Optional[int] = None) -> None:
    """Route structlog through stdlib logging with a JSON renderer."""
    logging.basicConfig(
        format="%(message)s",
        level=level if level is not None else resolve_log_level(),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
