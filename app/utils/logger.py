# app/utils/logger.py
"""
Logging setup shared by every module.

Handlers on the root logger:
  console             LOG_LEVEL and up
  logs/combined.log   LOG_LEVEL and up
  logs/error.log      ERROR and up, with the traceback of the exception being handled
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from app.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

COMBINED_LOG = "combined.log"
ERROR_LOG = "error.log"

MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 10

_configured = False


class StackTraceFormatter(logging.Formatter):
    """
    Appends the active exception's traceback to ERROR records logged without exc_info,
    so `logger.error(f"...: {e}")` inside an except block still records where it failed.
    """

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if record.levelno < logging.ERROR or record.exc_info:
            return text
        exc_info = sys.exc_info()
        if exc_info[0] is None:
            return text
        return f"{text}\n{self.formatException(exc_info)}"


def _file_handler(filename: str, level, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, filename),
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True
    os.makedirs(LOG_DIR, exist_ok=True)

    console = logging.StreamHandler()
    console.setLevel(LOG_LEVEL)
    console.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    stack_fmt = StackTraceFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    root.addHandler(console)
    root.addHandler(_file_handler(COMBINED_LOG, LOG_LEVEL, stack_fmt))
    root.addHandler(_file_handler(ERROR_LOG, logging.ERROR, stack_fmt))

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(logging.WARNING, root.level))


def get_logger(name: str) -> logging.Logger:
    _configure_root_logger()
    return logging.getLogger(name)
