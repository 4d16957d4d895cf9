"""Logging setup shared by every icewalk module."""

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER_NAME = "icewalk"


def setup_logger(name: str, level: str = None) -> logging.Logger:
    """
    Get a logger that writes through the shared icewalk handler.

    The handler is attached once, to the ``icewalk`` root logger; module
    loggers only propagate to it.

    Args:
        name: Logger name, normally ``__name__``
        level: Optional level override (defaults to LOG_LEVEL or INFO)

    Returns:
        Configured logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
        root.propagate = False

    if level:
        root.setLevel(level.upper())

    return logging.getLogger(name)
