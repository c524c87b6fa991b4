"""Tests for the logs.py file."""

# pylint: disable=C0116:missing-function-docstring

import io
import logging
import sys

from pyChainMaker import logs


def _console_handler() -> logging.Handler:
    return next(h for h in logs.get_root_logger().handlers if h.get_name() == logs.CONSOLE_HANDLER_NAME)


def test_console_handler_found_after_stderr_is_replaced(monkeypatch):
    monkeypatch.setattr(sys, "stderr", io.StringIO())

    assert logs.is_console_handler(_console_handler())


def test_file_handler_is_not_a_console_handler():
    file_handlers = [h for h in logs.get_root_logger().handlers if not logs.is_console_handler(h)]

    assert len(file_handlers) == 1


def test_set_logger_level():
    try:
        logs.set_logger_level(logging.DEBUG)
        assert _console_handler().level == logging.DEBUG
    finally:
        logs.set_logger_level(logging.WARNING)

    assert _console_handler().level == logging.WARNING
