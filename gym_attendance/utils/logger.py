"""
Logging setup for the attendance service.

The root logger is configured on the first get_logger() call: one stream
handler for the console and one size-rotated file, logs/attendance.log.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from gym_attendance.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FILE = "attendance.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_MAX_BYTES = 5 * 1024 * 1024
_BACKUPS = 10

_configured = False


def _handlers() -> list[logging.Handler]:
    os.makedirs(LOG_DIR, exist_ok=True)
    rotating = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, LOG_FILE),
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUPS,
        encoding="utf-8",
    )
    return [logging.StreamHandler(), rotating]


def _setup():
    global _configured
    if _configured:
        return
    _configured = True

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    for handler in _handlers():
        handler.setLevel(LOG_LEVEL)
        handler.setFormatter(formatter)
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    _setup()
    return logging.getLogger(name)
