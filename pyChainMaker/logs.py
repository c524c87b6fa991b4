"""Logging setup for the chain maker.

Everything (including DEBUG) goes to a rotating log file in the user's home directory. The console handler writes
to stderr so that it never mixes with a chain written to stdout; the CLI moves its level between DEBUG and WARNING.
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

APP_NAME = "pyChainMaker"
CONSOLE_HANDLER_NAME = "console"
OUTPUT_DIR = Path.home() / ("." + APP_NAME)
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


def setup_logging(console_level: int = logging.WARNING) -> None:
    """Set up the application logger to output to a file and to stderr."""
    logger = get_root_logger()
    logger.setLevel(logging.DEBUG)

    fp_logs = OUTPUT_DIR / "logs.txt"
    file_handler = TimedRotatingFileHandler(filename=fp_logs.resolve(), when="D", backupCount=5)
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s: %(message)s"))
    file_handler.setLevel(logging.DEBUG)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_handler.setLevel(level=console_level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)


def is_console_handler(handler: logging.Handler) -> bool:
    """Check if a logging handler is connected to the console.

    The handler installed by `setup_logging` is recognised by name, since it keeps the stream that was current when
    it was created even if `sys.stderr` is replaced later.

    Args:
        handler (logging.Handler): The handler to check.

    Returns:
        bool: True if the handler is connected to the console.

    """
    if handler.get_name() == CONSOLE_HANDLER_NAME:
        return True
    return isinstance(handler, logging.StreamHandler) and handler.stream in {sys.stdout, sys.stderr}


def set_logger_level(level: int) -> None:
    """Set the level of the console logger to the specified level.

    Args:
        level (int): The level to set the logger to.

    """
    for handler in get_root_logger().handlers:
        if is_console_handler(handler):
            handler.setLevel(level)


def get_logger(child_name: str) -> logging.Logger:
    "Create a child logger to the application root logger."
    return get_root_logger().getChild(child_name)


def get_root_logger() -> logging.Logger:
    """Return the package's top-level logger."""
    return logging.getLogger(APP_NAME)


setup_logging(console_level=logging.WARNING)
