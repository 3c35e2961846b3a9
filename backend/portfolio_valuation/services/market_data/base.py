# backend/portfolio_valuation/services/market_data/base.py
"""
Market data provider contract.

A provider answers a single question: the latest price of a symbol and the
currency it is quoted in. FX pairs ("USDILS=X") use the same call as stocks.

Providers raise domain exceptions. CachedPriceSource turns them into
per-symbol QuoteError values; providers never do.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from portfolio_valuation.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

RETRYABLE_ERRORS = (ProviderUnavailableError, RateLimitError)


@dataclass(frozen=True)
class PriceSnapshot:
    """
    One provider quote, already in major currency units.

    Attributes:
        symbol: Upper-case symbol as requested ("AAPL", "USDILS=X")
        price: Last close
        currency: ISO 4217 code of `price`
        as_of: Market timestamp (UTC)
    """

    symbol: str
    price: Decimal
    currency: str
    as_of: datetime

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol is required")
        if self.price < 0:
            raise ValueError(f"price must be non-negative, got {self.price}")


class MarketDataProvider(ABC):
    """
    Base class for quote vendors.

    `_execute_with_retry` retries RETRYABLE_ERRORS with exponential backoff
    between RETRY_MIN_WAIT and RETRY_MAX_WAIT seconds, up to
    MAX_RETRY_ATTEMPTS calls in total. TickerNotFoundError fails at once.
    Tests set the waits to 0.
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Short vendor id for logs and error details ("yahoo")."""

    @abstractmethod
    def get_latest_price(self, symbol: str) -> PriceSnapshot:
        """
        Latest price of `symbol`.

        Raises:
            TickerNotFoundError: No data for the symbol
            ProviderUnavailableError: Vendor or network failure
            RateLimitError: Vendor throttling
        """

    def _execute_with_retry(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call `func`, retrying transient vendor errors; the last error is re-raised."""
        retrying = retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(func)(*args, **kwargs)
