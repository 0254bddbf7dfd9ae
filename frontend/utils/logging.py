from __future__ import annotations

import logging
import os
from typing import Optional


def _default_level() -> int:
    name = os.getenv("VIBES_LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return a dashboard logger with a single console handler."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
    logger.setLevel(level if level is not None else _default_level())
    logger.propagate = False
    return logger
