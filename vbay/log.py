from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Optional

from vbay.config import Settings, get_settings


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Send ``vbay.*`` records to stderr at the configured level."""
    settings = settings or get_settings()

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "marketplace": {"format": "[%(levelname)s] %(name)s: %(message)s"},
        },
        "handlers": {
            "stderr": {"class": "logging.StreamHandler", "formatter": "marketplace"},
        },
        "loggers": {
            "vbay": {"handlers": ["stderr"], "level": settings.log_level.upper()},
        },
    })


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
