# backend/portfolio_valuation/middleware/__init__.py
"""
Request tracing and per-client rate limits.
"""

from portfolio_valuation.middleware.correlation import CorrelationIdMiddleware
from portfolio_valuation.middleware.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_VALUATION,
    RATE_LIMIT_MARKET_DATA,
    RATE_LIMIT_HEALTH,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_VALUATION",
    "RATE_LIMIT_MARKET_DATA",
    "RATE_LIMIT_HEALTH",
]
