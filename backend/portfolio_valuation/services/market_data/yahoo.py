# backend/portfolio_valuation/services/market_data/yahoo.py
"""
yfinance-backed MarketDataProvider.

Prices stock symbols ("AAPL", "EIMI.L", "TEVA.TA") and FX pairs
("USDILS=X") alike. The price is the last non-NaN daily close of a 5-day
window, so weekends and holidays still return the previous session.
Minor-unit quotes (GBp, ILA, ZAc) are scaled to major units.

yfinance raises untyped exceptions; they are sorted into TickerNotFound,
RateLimit and ProviderUnavailable by message. Yahoo data can lag 15-20
minutes and its throttling thresholds are undocumented.
"""

import logging
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pandas as pd
import yfinance as yf

from portfolio_valuation.services.constants import DEFAULT_QUOTE_CURRENCY
from portfolio_valuation.services.exceptions import (
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from portfolio_valuation.services.market_data.base import (
    MarketDataProvider,
    PriceSnapshot,
)

logger = logging.getLogger(__name__)

_NOT_FOUND_HINTS = ("not found", "no data", "delisted")
_THROTTLE_HINTS = ("rate limit", "too many requests")


class YahooFinanceProvider(MarketDataProvider):
    """
    Latest closes from Yahoo Finance.

        provider = YahooFinanceProvider(timeout=15)
        provider.get_latest_price("EIMI.L")  # price in GBP, not pence
    """

    # exchange currency -> (major currency, units per major unit)
    MINOR_UNIT_CURRENCIES: dict[str, tuple[str, Decimal]] = {
        "GBp": ("GBP", Decimal("100")),
        "GBX": ("GBP", Decimal("100")),
        "ILA": ("ILS", Decimal("100")),
        "ZAc": ("ZAR", Decimal("100")),
    }

    HISTORY_PERIOD: str = "5d"

    def __init__(self, timeout: int = 10) -> None:
        self._timeout = timeout
        logger.info(f"Yahoo provider ready, {timeout}s request timeout")

    @property
    def name(self) -> str:
        return "yahoo"

    def get_latest_price(self, symbol: str) -> PriceSnapshot:
        return self._execute_with_retry(self._fetch_latest_price, symbol)

    def _fetch_latest_price(self, symbol: str) -> PriceSnapshot:
        symbol = symbol.strip().upper()
        logger.debug(f"Requesting {symbol} from Yahoo")

        try:
            ticker = yf.Ticker(symbol)
            df = ticker.history(
                period=self.HISTORY_PERIOD,
                interval="1d",
                auto_adjust=False,
                timeout=self._timeout,
            )
            closes = (
                df["Close"].dropna()
                if df is not None and "Close" in df.columns
                else pd.Series(dtype=float)
            )
            price = self._to_decimal(closes.iloc[-1]) if not closes.empty else None
            if price is None:
                raise TickerNotFoundError(ticker=symbol, provider=self.name)

            metadata = getattr(ticker, "history_metadata", None) or {}
            price, currency = self._normalize_currency_units(
                price, metadata.get("currency") or DEFAULT_QUOTE_CURRENCY
            )
            snapshot = PriceSnapshot(
                symbol=symbol,
                price=price,
                currency=currency,
                as_of=self._to_utc(closes.index[-1]),
            )
        except TickerNotFoundError:
            raise
        except Exception as e:
            message = str(e).lower()
            if any(hint in message for hint in _NOT_FOUND_HINTS):
                raise TickerNotFoundError(ticker=symbol, provider=self.name)
            if any(hint in message for hint in _THROTTLE_HINTS):
                raise RateLimitError(provider=self.name)
            logger.error(f"Yahoo request for {symbol} failed: {e}")
            raise ProviderUnavailableError(provider=self.name, reason=str(e))

        logger.debug(f"{symbol} = {snapshot.price} {snapshot.currency}")
        return snapshot

    def _normalize_currency_units(self, price: Decimal, currency: str) -> tuple[Decimal, str]:
        """(5120, "GBp") -> (51.20, "GBP"); other currencies are only upper-cased."""
        if currency not in self.MINOR_UNIT_CURRENCIES:
            return price, currency.upper()
        major, per_major = self.MINOR_UNIT_CURRENCIES[currency]
        return price / per_major, major

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Decimal at 8 dp, or None for missing/NaN/non-numeric values."""
        if value is None:
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number):
            return None
        return Decimal(str(value)).quantize(Decimal("0.00000001"))

    @staticmethod
    def _to_utc(index_value: Any) -> datetime:
        """Aware UTC datetime from a history index entry (naive means UTC)."""
        if isinstance(index_value, pd.Timestamp):
            if index_value.tzinfo is None:
                index_value = index_value.tz_localize("UTC")
            return index_value.tz_convert("UTC").to_pydatetime()
        if isinstance(index_value, datetime):
            if index_value.tzinfo is None:
                return index_value.replace(tzinfo=timezone.utc)
            return index_value.astimezone(timezone.utc)
        return datetime.now(timezone.utc)
