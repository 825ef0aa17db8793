"""Logging system setup via a non-blocking queue handler."""

import atexit
import logging
import logging.handlers
import queue
import sys
from typing import Optional

from ..config import Settings, get_settings

LOGGER_NAME = "cli_plugin_host"

_listener: Optional[logging.handlers.QueueListener] = None


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the package logger.

    Records are pushed onto an unbounded queue and written to stderr by a
    background QueueListener, so app output on the shared terminal is never
    blocked by logging I/O.
    """
    global _listener

    settings = settings or get_settings()

    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(settings.logging.level)
    app_logger.propagate = False

    shutdown_logging()
    if app_logger.hasHandlers():
        app_logger.handlers.clear()

    if not settings.logging.enabled:
        app_logger.addHandler(logging.NullHandler())
        return app_logger

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(-1)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(settings.logging.format))

    _listener = logging.handlers.QueueListener(
        log_queue, stderr_handler, respect_handler_level=True
    )
    _listener.start()

    app_logger.addHandler(logging.handlers.QueueHandler(log_queue))
    atexit.register(shutdown_logging)

    app_logger.debug("Logging initialized")
    return app_logger


def shutdown_logging() -> None:
    """Stop the queue listener, flushing pending records."""
    global _listener

    if _listener is not None:
        try:
            _listener.stop()
        finally:
            _listener = None
