"""
Unit tests for the queue-based logging setup.
"""

import logging
import logging.handlers

from cli_plugin_host.config import Settings
from cli_plugin_host.logging import setup as log_setup
from cli_plugin_host.logging.setup import LOGGER_NAME, setup_logging, shutdown_logging


class TestSetupLogging:
    def test_queue_handler_installed(self):
        settings = Settings(logging={"level": "debug"})

        logger = setup_logging(settings)

        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.handlers.QueueHandler)
        assert log_setup._listener is not None

    def test_repeated_setup_replaces_handlers(self, settings):
        setup_logging(settings)
        first_listener = log_setup._listener

        logger = setup_logging(settings)

        assert len(logger.handlers) == 1
        assert log_setup._listener is not first_listener

    def test_disabled_logging_uses_null_handler(self):
        logger = setup_logging(Settings(logging={"enabled": False}))

        assert isinstance(logger.handlers[0], logging.NullHandler)
        assert log_setup._listener is None

    def test_shutdown_is_idempotent(self, settings):
        setup_logging(settings)

        shutdown_logging()
        shutdown_logging()

        assert log_setup._listener is None

    def test_records_reach_stderr(self, settings, capsys):
        setup_logging(settings)
        logging.getLogger(f"{LOGGER_NAME}.host").warning("disk almost full")

        shutdown_logging()

        assert "disk almost full" in capsys.readouterr().err
