"""Logging setup shared by the API process and the Celery worker."""

from __future__ import annotations

import logging
import logging.config
from typing import Optional

from incident_detector.config import get_settings

ROOT_LOGGER = "incident_detector"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class LoggingConfig:
    """Configure stdlib logging once per process from LOG_LEVEL."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        level = (level or get_settings().log_level or "INFO").upper()
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {"default": {"format": LOG_FORMAT}},
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "formatter": "default",
                    }
                },
                "loggers": {
                    ROOT_LOGGER: {
                        "handlers": ["console"],
                        "level": level,
                        "propagate": False,
                    },
                    # Chatty client libraries stay at WARNING unless debugging
                    "slack_sdk": {"level": "WARNING"},
                    "httpx": {"level": "WARNING"},
                },
            }
        )
        LoggingConfig._configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the incident_detector namespace."""
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(ROOT_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
