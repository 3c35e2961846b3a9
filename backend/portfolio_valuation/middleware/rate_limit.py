# backend/portfolio_valuation/middleware/rate_limit.py
"""
Per-client request limits (slowapi, in-memory storage).

A valuation can cost one Yahoo Finance call per uncached symbol plus the
three FX pairs, so /valuation and the market data routes are limited more
tightly than the default. The limit strings live in services/constants.py.

Clients are keyed by IP. Forwarded headers count only when the direct peer
is a trusted proxy.

    @router.post("")
    @limiter.limit(RATE_LIMIT_VALUATION)
    def valuate_accounts(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from portfolio_valuation.config import settings
from portfolio_valuation.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_VALUATION,
    RATE_LIMIT_MARKET_DATA,
    RATE_LIMIT_HEALTH,
)

logger = logging.getLogger(__name__)

# Every limit is "N/minute"
RETRY_AFTER_SECONDS = 60


def _get_client_ip(request: Request) -> str:
    """Rate limit key: the peer address, or the forwarded client behind a trusted proxy."""
    peer = get_remote_address(request)
    if not (settings.trust_proxy_headers or peer in settings.trusted_proxy_ips):
        return peer

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # "client, proxy1, proxy2"
        return forwarded.split(",")[0].strip()

    return request.headers.get("X-Real-IP") or peer


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the ErrorDetail shape, plus Retry-After."""
    limit = str(exc.detail) if exc.detail else "rate limit"
    logger.warning(f"{_get_client_ip(request)} over {limit} on {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Request limit reached ({limit}), try again shortly",
            "details": {"retry_after": RETRY_AFTER_SECONDS},
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_VALUATION",
    "RATE_LIMIT_MARKET_DATA",
    "RATE_LIMIT_HEALTH",
]
