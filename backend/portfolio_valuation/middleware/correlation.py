# backend/portfolio_valuation/middleware/correlation.py
"""
Tags each request with a correlation ID.

The ID comes from X-Correlation-ID, else X-Request-ID, else a fresh UUID4.
Header values over MAX_CORRELATION_ID_LENGTH or with non-printable
characters are ignored. The ID lands in the request context (and from there
on every log record, worker threads included) and is returned in the
X-Correlation-ID response header.
"""

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from portfolio_valuation.utils.context import set_correlation_id, clear_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"
MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Assigns a correlation ID to each request and logs its duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = self._get_correlation_id(request)
        set_correlation_id(correlation_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({elapsed_ms:.1f} ms)"
            )
            return response

        finally:
            clear_correlation_id()

    def _get_correlation_id(self, request: Request) -> str:
        """Use the first acceptable header value, or generate a UUID."""
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            value = request.headers.get(header)
            if value and self._is_acceptable(value):
                return value
        return str(uuid.uuid4())

    @staticmethod
    def _is_acceptable(value: str) -> bool:
        return len(value) <= MAX_CORRELATION_ID_LENGTH and value.isprintable()
