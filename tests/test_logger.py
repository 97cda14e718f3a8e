"""Tests for the logging setup: separate error file and traceback capture."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import logging
from logging.handlers import RotatingFileHandler

from app.utils.logger import (
    COMBINED_LOG,
    ERROR_LOG,
    LOG_FORMAT,
    StackTraceFormatter,
    get_logger,
)


def _record(level, msg, exc_info=None):
    return logging.LogRecord("app.test", level, __file__, 1, msg, None, exc_info)


class TestHandlers:
    def test_combined_and_error_files_are_attached(self):
        get_logger(__name__)
        handlers = {
            os.path.basename(h.baseFilename): h
            for h in logging.getLogger().handlers
            if isinstance(h, RotatingFileHandler)
        }

        assert COMBINED_LOG in handlers
        assert ERROR_LOG in handlers
        assert handlers[ERROR_LOG].level == logging.ERROR
        assert isinstance(handlers[ERROR_LOG].formatter, StackTraceFormatter)


class TestStackTraceFormatter:
    def test_error_inside_except_block_carries_traceback(self):
        fmt = StackTraceFormatter(fmt=LOG_FORMAT)
        try:
            raise ValueError("bad payload")
        except ValueError:
            text = fmt.format(_record(logging.ERROR, "Failed to sync event"))

        assert "Failed to sync event" in text
        assert "Traceback (most recent call last)" in text
        assert "ValueError: bad payload" in text

    def test_error_outside_except_block_is_single_line(self):
        text = StackTraceFormatter(fmt=LOG_FORMAT).format(_record(logging.ERROR, "Registry not found"))
        assert "Traceback" not in text

    def test_warning_never_gets_traceback(self):
        fmt = StackTraceFormatter(fmt=LOG_FORMAT)
        try:
            raise ValueError("ignored")
        except ValueError:
            text = fmt.format(_record(logging.WARNING, "Skipped"))
        assert "Traceback" not in text

    def test_explicit_exc_info_is_not_duplicated(self):
        fmt = StackTraceFormatter(fmt=LOG_FORMAT)
        try:
            raise ValueError("once")
        except ValueError:
            text = fmt.format(_record(logging.ERROR, "Unhandled", exc_info=sys.exc_info()))
        assert text.count("Traceback (most recent call last)") == 1
