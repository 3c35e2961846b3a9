# backend/portfolio_valuation/utils/logging.py
"""
Root logger configuration, called once from main.py.

Output is either a text line or a JSON object per record (LOG_FORMAT), and
every record carries the request correlation ID, including records from the
quote and FX worker threads.

Levels used across the code:
    DEBUG    cache hits, per-symbol fetches, single conversions
    INFO     valuation summaries, rate refreshes, quote cache writes
    WARNING  failed quotes, stale cache fallbacks, skipped conversions, retries
    ERROR    provider outages, unhandled errors at the API boundary
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from portfolio_valuation.config import settings
from portfolio_valuation.utils.context import get_correlation_id

DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

# yfinance and its HTTP stack log every request at INFO/DEBUG
NOISY_LOGGERS = [
    "yfinance",
    "peewee",
    "urllib3",
    "urllib3.connectionpool",
    "requests",
    "httpx",
    "httpcore",
    "asyncio",
]

_LEVEL_NAMES = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Everything a bare LogRecord has; any other attribute came in through extra=
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"correlation_id", "message", "taskName"}


class CorrelationIdFilter(logging.Filter):
    """Stamp `record.correlation_id` from the request context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    Single-line JSON records for log shipping.

        {"timestamp": "...", "level": "WARNING", "logger": "...",
         "correlation_id": "3f0c...", "message": "Quote unavailable for XYZ",
         "extra": {"symbol": "XYZ"}}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: _json_safe(value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS
        }
        if extra:
            payload["extra"] = extra

        return json.dumps(payload)


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Replace the root logger's handlers with one stdout handler.

    Args:
        level: Level name; settings.log_level when omitted
        log_format: "text" or "json"; settings.log_format when omitted
        suppress_noisy_loggers: Raise NOISY_LOGGERS to WARNING

    Raises:
        ValueError: Unknown level name
    """
    level_name = level or settings.log_level
    numeric_level = _get_log_level(level_name)
    fmt = (log_format or settings.log_format).lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEFAULT_TEXT_FORMAT, DEFAULT_DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    if suppress_noisy_loggers:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging ready (level={level_name}, format={fmt})")


def _get_log_level(level_str: str) -> int:
    """Case-insensitive level name to its numeric value."""
    name = level_str.strip().upper()
    try:
        return _LEVEL_NAMES[name]
    except KeyError:
        raise ValueError(
            f"Invalid log level: '{level_str}' (expected one of {', '.join(_LEVEL_NAMES)})"
        ) from None
