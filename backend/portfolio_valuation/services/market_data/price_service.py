# backend/portfolio_valuation/services/market_data/price_service.py
"""
Cached price source backed by the stock_price_history table.

Lookup order for each requested symbol:
    1. Newest cached row younger than the cache TTL -> served, from_cache=True
    2. Live provider fetch -> stored as a new row, from_cache=False
    3. Provider failed but an older row exists -> served stale, from_cache=True
    4. Nothing at all -> QuoteError

Provider calls for cache misses run concurrently in a thread pool. All
database work stays on the calling thread; each fetch_quotes() call opens
and closes its own session.

Usage:
    from portfolio_valuation.database import SessionLocal
    from portfolio_valuation.services.market_data import (
        CachedPriceSource,
        YahooFinanceProvider,
    )

    source = CachedPriceSource(
        provider=YahooFinanceProvider(),
        session_factory=SessionLocal,
    )
    quotes = source.fetch_quotes(["AAPL", "msft", "AAPL"])
    # {"AAPL": Quote(...), "MSFT": Quote(...)}
"""

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_valuation.config import settings
from portfolio_valuation.models import StockPriceHistory
from portfolio_valuation.services.exceptions import (
    PriceUnavailableError,
    ValidationError,
)
from portfolio_valuation.services.market_data.base import (
    MarketDataProvider,
    PriceSnapshot,
)
from portfolio_valuation.services.valuation.types import (
    Quote,
    QuoteError,
    normalize_currency,
    normalize_symbol,
)

logger = logging.getLogger(__name__)


class CachedPriceSource:
    """
    PriceSource implementation with a database quote cache.

    Attributes:
        _provider: Live market data provider
        _session_factory: Callable returning a new Session (e.g., SessionLocal)
        _cache_ttl: Maximum age of a cached row served without refetching
        _max_workers: Upper bound on concurrent provider calls
    """

    def __init__(
            self,
            provider: MarketDataProvider,
            session_factory: Callable[[], Session],
            cache_ttl: timedelta | None = None,
            max_workers: int | None = None,
    ) -> None:
        self._provider = provider
        self._session_factory = session_factory
        self._cache_ttl = cache_ttl if cache_ttl is not None else settings.price_cache_ttl
        self._max_workers = max_workers or settings.max_fetch_workers

        logger.info(
            f"CachedPriceSource initialized (provider={provider.name}, "
            f"ttl={self._cache_ttl}, max_workers={self._max_workers})"
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def fetch_quotes(self, symbols: Iterable[str]) -> dict[str, Quote | QuoteError]:
        """
        Fetch the latest quote for every unique symbol.

        Args:
            symbols: Tickers in any case; duplicates and blanks are ignored

        Returns:
            Normalized symbol -> Quote, or QuoteError when no price exists
        """
        requested = list(dict.fromkeys(
            normalize_symbol(symbol) for symbol in symbols if symbol and symbol.strip()
        ))
        if not requested:
            return {}

        results: dict[str, Quote | QuoteError] = {}

        with self._session_factory() as db:
            cached = self._load_latest_rows(db, requested)
            now = datetime.now(timezone.utc)

            to_fetch = []
            for symbol in requested:
                row = cached.get(symbol)
                if row is not None and now - row.timestamp_utc < self._cache_ttl:
                    results[symbol] = self._quote_from_row(row)
                else:
                    to_fetch.append(symbol)

            logger.debug(
                f"Quote cache: {len(requested) - len(to_fetch)} hits, {len(to_fetch)} misses"
            )

            fetched = self._fetch_from_provider(to_fetch)
            new_rows = []

            for symbol in to_fetch:
                outcome = fetched[symbol]
                if isinstance(outcome, PriceSnapshot):
                    row = StockPriceHistory(
                        symbol=symbol,
                        price=outcome.price,
                        currency=normalize_currency(outcome.currency),
                        timestamp=now,
                        provider=self._provider.name,
                    )
                    new_rows.append(row)
                    results[symbol] = Quote(
                        symbol=symbol,
                        price=outcome.price,
                        currency=row.currency,
                        timestamp=now,
                        from_cache=False,
                    )
                elif cached.get(symbol) is not None:
                    logger.warning(
                        f"Serving stale cached price for {symbol} after provider failure: {outcome}"
                    )
                    results[symbol] = self._quote_from_row(cached[symbol])
                else:
                    results[symbol] = QuoteError(symbol=symbol, error_reason=str(outcome))

            self._store_rows(db, new_rows)

        return {symbol: results[symbol] for symbol in requested}

    def get_quote(self, symbol: str) -> Quote:
        """
        Fetch one quote, raising when no price is available.

        Raises:
            ValidationError: If the symbol is blank
            PriceUnavailableError: If neither the provider nor the cache has a price
        """
        if not symbol or not symbol.strip():
            raise ValidationError("Symbol is required", field="symbol")

        key = normalize_symbol(symbol)
        outcome = self.fetch_quotes([key])[key]
        if isinstance(outcome, QuoteError):
            raise PriceUnavailableError(symbol=key, reason=outcome.error_reason)
        return outcome

    def get_latest_cached_price(self, symbol: str) -> Quote | None:
        """Newest cached quote for a symbol regardless of age, or None."""
        key = normalize_symbol(symbol)
        with self._session_factory() as db:
            row = self._load_latest_rows(db, [key]).get(key)
            return self._quote_from_row(row) if row is not None else None

    def update_price_cache(self, symbol: str, price: Decimal, currency: str) -> None:
        """Append a cache row for a price obtained outside this source."""
        row = StockPriceHistory(
            symbol=normalize_symbol(symbol),
            price=price,
            currency=normalize_currency(currency),
            timestamp=datetime.now(timezone.utc),
            provider=self._provider.name,
        )
        with self._session_factory() as db:
            self._store_rows(db, [row])

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _fetch_from_provider(self, symbols: list[str]) -> dict[str, PriceSnapshot | Exception]:
        """
        Fetch symbols concurrently; failures are returned, not raised.

        Each task runs in a copy of the caller's context so log records keep
        the request correlation ID.
        """
        if not symbols:
            return {}

        outcomes: dict[str, PriceSnapshot | Exception] = {}
        workers = min(self._max_workers, len(symbols))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="quotes") as executor:
            futures = {
                symbol: executor.submit(
                    contextvars.copy_context().run, self._provider.get_latest_price, symbol
                )
                for symbol in symbols
            }
            for symbol, future in futures.items():
                try:
                    outcomes[symbol] = future.result()
                except Exception as e:
                    logger.warning(f"Price fetch failed for {symbol}: {e}")
                    outcomes[symbol] = e

        return outcomes

    def _load_latest_rows(self, db: Session, symbols: list[str]) -> dict[str, StockPriceHistory]:
        """Newest row per symbol. A broken cache reads as empty."""
        latest: dict[str, StockPriceHistory] = {}
        try:
            for symbol in symbols:
                row = db.execute(
                    select(StockPriceHistory)
                    .where(StockPriceHistory.symbol == symbol)
                    .order_by(StockPriceHistory.timestamp.desc(), StockPriceHistory.id.desc())
                    .limit(1)
                ).scalar_one_or_none()
                if row is not None:
                    latest[symbol] = row
        except SQLAlchemyError as e:
            logger.error(f"Quote cache read failed: {e}")
            db.rollback()
            return {}
        return latest

    def _store_rows(self, db: Session, rows: list[StockPriceHistory]) -> None:
        if not rows:
            return
        try:
            db.add_all(rows)
            db.commit()
            logger.debug(f"Cached {len(rows)} quotes")
        except SQLAlchemyError as e:
            logger.error(f"Quote cache write failed: {e}")
            db.rollback()

    @staticmethod
    def _quote_from_row(row: StockPriceHistory) -> Quote:
        return Quote(
            symbol=row.symbol,
            price=Decimal(row.price),
            currency=row.currency,
            timestamp=row.timestamp_utc,
            from_cache=True,
        )
