"""Tests for logger utility."""

import logging
from types import SimpleNamespace

from deepdive.utils import logger as logger_module
from deepdive.utils.logger import setup_logger, get_app_logger, init_app_logger


class TestSetupLogger:
    """SUT: setup_logger"""

    def test_returns_logger(self):
        """Should return a Logger instance."""
        logger = setup_logger("test_logger_returns")
        assert isinstance(logger, logging.Logger)

    def test_with_level(self):
        """Setting DEBUG level should take effect."""
        logger = setup_logger("test_logger_level", log_level="DEBUG")
        assert logger.level == logging.DEBUG

    def test_no_duplicate_handlers(self):
        """Calling multiple times should not add duplicate handlers."""
        name = "test_logger_dup"
        logger1 = setup_logger(name)
        handler_count = len(logger1.handlers)
        logger2 = setup_logger(name)
        assert len(logger2.handlers) == handler_count
        assert logger1 is logger2

    def test_log_file(self, tmp_path):
        """A log file handler writes into a created directory."""
        log_file = tmp_path / "logs" / "app.log"
        logger = setup_logger("test_logger_file", log_file=str(log_file))
        logger.info("hello file")
        for handler in logger.handlers:
            handler.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")


class TestGetAppLogger:
    """SUT: get_app_logger"""

    def test_default(self):
        """Should return a logger even when not explicitly initialized."""
        logger = get_app_logger()
        assert isinstance(logger, logging.Logger)

    def test_after_init(self, monkeypatch):
        monkeypatch.setattr(logger_module, "app_logger", None)
        logger = init_app_logger(SimpleNamespace(log_level="WARNING", log_file=None))
        assert get_app_logger() is logger
        assert logger.name == "deepdive"
        assert logger.level == logging.WARNING
