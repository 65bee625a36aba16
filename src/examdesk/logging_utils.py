"""
Logging set-up for hosts of the store (CLI, scripts).

Library modules only create loggers; handlers are installed here.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

PACKAGE_LOGGER = "examdesk"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class _ExamDeskHandler(logging.StreamHandler):
    """Marker subclass so configure_logging() can find its own handler."""


def configure_logging(verbose: bool = False, stream: Optional[TextIO] = None) -> logging.Handler:
    """
    Attach a single stream handler to the package logger.

    Calling again replaces the level and stream instead of stacking handlers.

    Args:
        verbose: DEBUG when True, else INFO.
        stream: Destination (default stderr).

    Returns:
        The installed handler.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(logger.handlers):
        if isinstance(existing, _ExamDeskHandler):
            logger.removeHandler(existing)

    handler = _ExamDeskHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    level = logging.DEBUG if verbose else logging.INFO
    handler.setLevel(level)
    logger.setLevel(level)
    logger.addHandler(handler)
    return handler
