# backend/tests/utils/test_logging.py
"""
Tests for logging configuration.
"""

import json
import logging

import pytest

from portfolio_valuation.utils.context import clear_correlation_id, set_correlation_id
from portfolio_valuation.utils.logging import (
    CorrelationIdFilter,
    JsonFormatter,
    NOISY_LOGGERS,
    _get_log_level,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way it was after setup_logging()."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestGetLogLevel:
    """Tests for level name parsing."""

    @pytest.mark.parametrize("name,expected", [
        ("DEBUG", logging.DEBUG),
        ("info", logging.INFO),
        (" Warning ", logging.WARNING),
        ("WARN", logging.WARNING),
        ("error", logging.ERROR),
        ("CRITICAL", logging.CRITICAL),
    ])
    def test_valid_levels(self, name, expected):
        assert _get_log_level(name) == expected

    def test_invalid_level_raises(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            _get_log_level("LOUD")


class TestJsonFormatter:
    """Tests for JSON line output."""

    def _format(self, **extra) -> dict:
        record = logging.LogRecord(
            "portfolio_valuation.test", logging.WARNING, __file__, 10,
            "Quote unavailable for %s", ("XYZ",), None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        CorrelationIdFilter().filter(record)
        return json.loads(JsonFormatter().format(record))

    def test_core_fields(self):
        """Level, logger, message and correlation ID are present."""
        set_correlation_id("json-1")
        try:
            entry = self._format()
        finally:
            clear_correlation_id()

        assert entry["level"] == "WARNING"
        assert entry["logger"] == "portfolio_valuation.test"
        assert entry["message"] == "Quote unavailable for XYZ"
        assert entry["correlation_id"] == "json-1"
        assert "timestamp" in entry

    def test_extra_fields(self):
        """Custom record attributes are grouped under 'extra'."""
        entry = self._format(symbol="XYZ")

        assert entry["extra"] == {"symbol": "XYZ"}

    def test_unserializable_extra_is_stringified(self):
        """Values json cannot encode fall back to str()."""
        entry = self._format(amount=object())

        assert isinstance(entry["extra"]["amount"], str)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_installs_single_handler(self, restore_root_logger):
        """The root logger gets one handler with the correlation filter."""
        setup_logging(level="DEBUG", log_format="text")

        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert any(isinstance(f, CorrelationIdFilter) for f in root.handlers[0].filters)

    def test_json_format(self, restore_root_logger):
        """log_format='json' selects JsonFormatter."""
        setup_logging(level="INFO", log_format="json")

        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_noisy_loggers_clamped(self, restore_root_logger):
        """Third-party loggers are raised to WARNING."""
        setup_logging(level="DEBUG")

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_invalid_level_raises(self, restore_root_logger):
        with pytest.raises(ValueError):
            setup_logging(level="nope")
