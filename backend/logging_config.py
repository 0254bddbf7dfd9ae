"""Logging setup for the analyzer API.

Levels come from the environment:

* ``VIBES_LOG_LEVEL`` for the application and uvicorn's error log (default INFO).
* ``UVICORN_ACCESS_LOG_LEVEL`` for per-request access lines (default WARNING).
* ``VIBES_PROVIDER_LOG_LEVEL`` for the provider modules and ``urllib3``, which
  log request bodies at DEBUG (default: same as ``VIBES_LOG_LEVEL`` but never
  below INFO).
"""

from __future__ import annotations

import logging
import os
from logging.config import dictConfig
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_NOISY_LOGGERS = ("backend.providers", "urllib3")


def _level(name: Optional[str], fallback: str) -> str:
    """Return a valid upper-case level name, falling back on unknown values."""
    candidate = (name or "").strip().upper()
    return candidate if isinstance(logging.getLevelName(candidate), int) else fallback


def build_logging_config(
    app_level: str = "INFO",
    access_level: str = "WARNING",
    provider_level: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the ``dictConfig`` payload shared by the API and uvicorn."""
    if provider_level is None:
        provider_level = app_level if logging.getLevelName(app_level) >= logging.INFO else "INFO"

    def console_logger(level: str) -> Dict[str, Any]:
        return {"handlers": ["console"], "level": level, "propagate": False}

    loggers = {
        "uvicorn": console_logger(app_level),
        "uvicorn.error": console_logger(app_level),
        "uvicorn.access": console_logger(access_level),
    }
    loggers.update({name: console_logger(provider_level) for name in _NOISY_LOGGERS})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "standard"},
        },
        "root": {"handlers": ["console"], "level": app_level},
        "loggers": loggers,
    }


def configure_logging() -> None:
    """Apply the environment-driven logging configuration."""
    app_level = _level(os.getenv("VIBES_LOG_LEVEL"), "INFO")
    access_level = _level(os.getenv("UVICORN_ACCESS_LOG_LEVEL"), "WARNING")
    provider_env = os.getenv("VIBES_PROVIDER_LOG_LEVEL")
    provider_level = _level(provider_env, app_level) if provider_env else None

    dictConfig(build_logging_config(app_level, access_level, provider_level))
    logging.getLogger(__name__).debug(
        "Logging configured (app=%s, access=%s)", app_level, access_level
    )
