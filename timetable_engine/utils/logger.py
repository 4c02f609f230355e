"""Process-wide logging setup for the scheduling engine."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from timetable_engine.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
ROOT_LOGGER_NAME = "timetable_engine"

_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stdout handler to the package logger exactly once.

    Only the ``timetable_engine`` hierarchy is configured so that embedding
    applications keep control of the root logger.
    """

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    resolved_level = (level or get_settings().log_level).upper()
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(resolved_level)
    package_logger.addHandler(handler)
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package hierarchy."""
    configure_logging()
    return logging.getLogger(name)
