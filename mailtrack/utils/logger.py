"""Central logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any

from mailtrack.core.config import settings


def _level() -> str:
    return "DEBUG" if settings.environment == "development" else "INFO"


def build_logging_config() -> dict[str, Any]:
    """Return the dictConfig used by the API process."""

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
            }
        },
        "loggers": {
            "mailtrack": {"level": _level(), "propagate": True},
            # SQL echo is noisy even in development.
            "sqlalchemy.engine": {"level": "WARNING", "propagate": True},
        },
        "root": {
            "handlers": ["console"],
            "level": _level(),
        },
    }


def configure_logging() -> None:
    """Apply the logging configuration once at application startup."""

    dictConfig(build_logging_config())


logger = logging.getLogger("mailtrack")
