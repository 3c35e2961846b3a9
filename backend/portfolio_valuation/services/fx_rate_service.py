# backend/portfolio_valuation/services/fx_rate_service.py
"""
Exchange rate source for the valuation engine.

=============================================================================
FX RATE CONVENTION
=============================================================================

Every rate is quoted against the ILS pivot:

    rate[X] = "1 X = N ILS"

Example:
    rates = {"USD": 3.6, "EUR": 3.9, "GBP": 4.5, "ILS": 1}

    100 USD -> EUR:  100 × 3.6 ÷ 3.9 = 92.31 EUR

The Yahoo Finance pair symbol {X}ILS=X returns exactly this number, so
rates are used as fetched.

=============================================================================

Behavior:
- USDILS=X, EURILS=X and GBPILS=X are fetched concurrently
- All-or-nothing: any failed or non-positive pair makes the whole set None
- A complete set is cached in memory for the configured TTL (1 hour)
- Failures are never cached; the next call tries the provider again

Usage:
    from portfolio_valuation.services.fx_rate_service import YahooExchangeRateSource
    from portfolio_valuation.services.market_data import YahooFinanceProvider

    source = YahooExchangeRateSource(provider=YahooFinanceProvider())
    rates = source.fetch_exchange_rates()
    if rates is not None:
        rates.rate_for("USD")  # Decimal("3.6")
"""

import contextvars
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal

from portfolio_valuation.config import settings
from portfolio_valuation.services.constants import RATE_CURRENCIES, YAHOO_FX_SYMBOLS
from portfolio_valuation.services.exceptions import FXConversionError, FXProviderError
from portfolio_valuation.services.market_data.base import MarketDataProvider
from portfolio_valuation.services.valuation.types import ExchangeRateSet

logger = logging.getLogger(__name__)


class YahooExchangeRateSource:
    """
    ExchangeRateSource implementation over a MarketDataProvider.

    Attributes:
        _provider: Provider used to price the FX pair symbols
        _cache_ttl_seconds: How long a complete rate set is reused
        _cached: Last complete rate set and the monotonic time it was stored
    """

    def __init__(
            self,
            provider: MarketDataProvider,
            cache_ttl_seconds: int | None = None,
    ) -> None:
        self._provider = provider
        self._cache_ttl_seconds = (
            cache_ttl_seconds if cache_ttl_seconds is not None else settings.fx_cache_ttl_seconds
        )
        self._lock = threading.Lock()
        self._cached: tuple[ExchangeRateSet, float] | None = None

        logger.info(
            f"YahooExchangeRateSource initialized (provider={provider.name}, "
            f"ttl={self._cache_ttl_seconds}s)"
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def fetch_exchange_rates(self) -> ExchangeRateSet | None:
        """
        Current rates into ILS, or None when any pair is unavailable.

        Never raises.
        """
        cached = self._get_cached()
        if cached is not None:
            logger.debug("Serving exchange rates from cache")
            return cached

        try:
            rates = self._fetch_rate_set()
        except FXProviderError as e:
            logger.warning(f"Exchange rates unavailable: {e.reason}")
            return None

        with self._lock:
            self._cached = (rates, time.monotonic())

        logger.info(
            "Fetched exchange rates: "
            + ", ".join(f"{c}={rates.rate_for(c)}" for c in RATE_CURRENCIES)
        )
        return rates

    def get_exchange_rates(self) -> ExchangeRateSet:
        """
        Current rates, raising when unavailable.

        Raises:
            FXProviderError: If the rate set could not be fetched
        """
        rates = self.fetch_exchange_rates()
        if rates is None:
            raise FXProviderError(
                provider=self._provider.name,
                reason="Failed to fetch exchange rates",
            )
        return rates

    def clear_cache(self) -> None:
        with self._lock:
            self._cached = None

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _get_cached(self) -> ExchangeRateSet | None:
        with self._lock:
            if self._cached is None:
                return None
            rates, stored_at = self._cached
            if time.monotonic() - stored_at >= self._cache_ttl_seconds:
                self._cached = None
                return None
            return rates

    def _fetch_rate_set(self) -> ExchangeRateSet:
        """
        Fetch every pair concurrently and build the set.

        Raises:
            FXProviderError: If any pair failed or the set is invalid
        """
        with ThreadPoolExecutor(
                max_workers=len(RATE_CURRENCIES), thread_name_prefix="fx"
        ) as executor:
            futures = {
                currency: executor.submit(
                    contextvars.copy_context().run,
                    self._provider.get_latest_price,
                    YAHOO_FX_SYMBOLS[currency],
                )
                for currency in RATE_CURRENCIES
            }

            rates: dict[str, Decimal] = {}
            failures: list[str] = []
            for currency, future in futures.items():
                try:
                    rates[currency] = future.result().price
                except Exception as e:
                    failures.append(f"{YAHOO_FX_SYMBOLS[currency]}: {e}")

        if failures:
            raise FXProviderError(provider=self._provider.name, reason="; ".join(failures))

        try:
            return ExchangeRateSet.from_mapping(rates, fetched_at=datetime.now(timezone.utc))
        except FXConversionError as e:
            raise FXProviderError(provider=self._provider.name, reason=e.reason) from e

