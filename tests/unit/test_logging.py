"""Unit tests for logging configuration."""

import logging

import pytest

from portfolio_ledger.utils.logging import get_logger, log_with_context, setup_logging


class TestLoggingSetup:
    """Test cases for logging setup."""

    def test_setup_logging_default_level(self) -> None:
        """Test setup_logging with default INFO level."""
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self) -> None:
        """Test setup_logging with DEBUG level."""
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_invalid_level_fallback(self) -> None:
        """Test setup_logging with invalid level falls back to INFO."""
        setup_logging(level="INVALID")
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_logger_levels(self) -> None:
        """Test per-logger overrides are applied."""
        setup_logging(
            level="INFO",
            logger_levels={"portfolio_ledger.data": "warning"},
        )
        assert logging.getLogger("portfolio_ledger.data").level == logging.WARNING

        logging.getLogger("portfolio_ledger.data").setLevel(logging.NOTSET)


class TestGetLogger:
    """Test cases for get_logger."""

    def test_get_logger_returns_named_logger(self) -> None:
        """Test get_logger returns logger with the given name."""
        logger = get_logger("portfolio_ledger.portfolio.lifecycle")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "portfolio_ledger.portfolio.lifecycle"

    def test_get_logger_same_instance(self) -> None:
        """Test get_logger returns the same instance for the same name."""
        assert get_logger("same") is get_logger("same")


class TestLogWithContext:
    """Test cases for log_with_context."""

    def test_log_with_context_formats_fields(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test context is appended as key=value pairs."""
        logger = get_logger("test.context")

        with caplog.at_level(logging.INFO, logger="test.context"):
            log_with_context(logger, "info", "Portfolio created", portfolio_id=1, owner="alice")

        assert "Portfolio created | portfolio_id=1 owner=alice" in caplog.text

    def test_log_with_context_without_context(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test message is logged unchanged without context."""
        logger = get_logger("test.plain")

        with caplog.at_level(logging.WARNING, logger="test.plain"):
            log_with_context(logger, "warning", "Plain message")

        assert caplog.records[-1].getMessage() == "Plain message"
        assert caplog.records[-1].levelno == logging.WARNING
