# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database fixtures (in-memory SQLite quote cache)
- Mock market data provider
- Fake price and exchange rate sources for the valuation engine
- Sample data factories
"""

import os

# Must be set before any portfolio_valuation import reads the settings
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Iterator
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_valuation.models import Base
from portfolio_valuation.services.exceptions import TickerNotFoundError
from portfolio_valuation.services.market_data.base import MarketDataProvider, PriceSnapshot
from portfolio_valuation.services.valuation.types import (
    Account,
    CashBalance,
    ExchangeRateSet,
    Holding,
    Quote,
    QuoteError,
    normalize_symbol,
)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    """Session factory bound to the test engine (what CachedPriceSource expects)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Iterator[Session]:
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# MOCK MARKET DATA PROVIDER
# =============================================================================

class MockMarketDataProvider(MarketDataProvider):
    """
    Mock implementation of MarketDataProvider for testing.

    Prices and errors are configured per symbol; unknown symbols raise
    TickerNotFoundError. Calls are recorded (thread-safe) so tests can
    assert on cache hits.
    """

    def __init__(self):
        self._prices: dict[str, tuple[Decimal, str]] = {}
        self._errors: dict[str, Exception] = {}
        self._lock = threading.Lock()
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "mock"

    def add_price(self, symbol: str, price: str | Decimal, currency: str = "USD") -> None:
        """Configure a successful response for a symbol."""
        self._prices[symbol.upper()] = (Decimal(str(price)), currency)
        self._errors.pop(symbol.upper(), None)

    def add_error(self, symbol: str, error: Exception) -> None:
        """Configure an error response for a symbol."""
        self._errors[symbol.upper()] = error

    def call_count(self, symbol: str) -> int:
        return self.calls.count(symbol.upper())

    def get_latest_price(self, symbol: str) -> PriceSnapshot:
        key = symbol.upper()
        with self._lock:
            self.calls.append(key)

        if key in self._errors:
            raise self._errors[key]
        if key in self._prices:
            price, currency = self._prices[key]
            return PriceSnapshot(
                symbol=key,
                price=price,
                currency=currency,
                as_of=datetime.now(timezone.utc),
            )
        raise TickerNotFoundError(ticker=key, provider=self.name)


@pytest.fixture
def mock_provider() -> MockMarketDataProvider:
    """Provide a fresh mock market data provider."""
    return MockMarketDataProvider()


# =============================================================================
# FAKE SOURCES FOR THE VALUATION ENGINE
# =============================================================================

class FakePriceSource:
    """PriceSource returning preconfigured quotes; unknown symbols get a QuoteError."""

    def __init__(self, quotes: Iterable[Quote | QuoteError] = ()):
        self.quotes: dict[str, Quote | QuoteError] = {q.symbol: q for q in quotes}
        self.requested: list[list[str]] = []

    def fetch_quotes(self, symbols: Iterable[str]) -> dict[str, Quote | QuoteError]:
        keys = list(dict.fromkeys(normalize_symbol(s) for s in symbols if s and s.strip()))
        self.requested.append(keys)
        return {
            key: self.quotes.get(key, QuoteError(symbol=key, error_reason="Ticker not found"))
            for key in keys
        }


class FakeRateSource:
    """ExchangeRateSource returning a fixed rate set (or None)."""

    def __init__(self, rates: ExchangeRateSet | None):
        self.rates = rates
        self.call_count = 0

    def fetch_exchange_rates(self) -> ExchangeRateSet | None:
        self.call_count += 1
        return self.rates


class ExplodingSource:
    """Source whose every call raises; for checking the engine stays total."""

    def fetch_quotes(self, symbols):
        raise RuntimeError("price backend exploded")

    def fetch_exchange_rates(self):
        raise RuntimeError("fx backend exploded")


# =============================================================================
# FACTORIES
# =============================================================================

def create_rates(
        usd: str = "3.6",
        eur: str = "3.9",
        gbp: str = "4.5",
) -> ExchangeRateSet:
    """Rate set into ILS; defaults match the documented examples."""
    return ExchangeRateSet(
        usd=Decimal(usd),
        eur=Decimal(eur),
        gbp=Decimal(gbp),
        fetched_at=datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc),
    )


def create_quote(
        symbol: str,
        price: str,
        currency: str = "USD",
        from_cache: bool = False,
) -> Quote:
    return Quote(
        symbol=symbol,
        price=Decimal(price),
        currency=currency,
        timestamp=datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc),
        from_cache=from_cache,
    )


def create_holding(
        symbol: str = "AAPL",
        quantity: str = "10",
        avg_cost_basis: str = "100",
        name: str | None = None,
        id: str | None = None,
) -> Holding:
    return Holding(
        id=id or f"h-{uuid4().hex[:8]}",
        symbol=symbol,
        quantity=Decimal(quantity),
        avg_cost_basis=Decimal(avg_cost_basis),
        name=name,
    )


def create_cash(currency: str, amount: str, id: str | None = None) -> CashBalance:
    return CashBalance(
        id=id or f"c-{currency.lower()}",
        currency=currency,
        amount=Decimal(amount),
    )


def create_account(
        currency: str = "USD",
        holdings: Iterable[Holding] = (),
        cash_balances: Iterable[CashBalance] = (),
        name: str = "Brokerage",
        id: str | None = None,
        broker: str | None = None,
) -> Account:
    return Account(
        id=id or f"a-{uuid4().hex[:8]}",
        name=name,
        currency=currency,
        holdings=list(holdings),
        cash_balances=list(cash_balances),
        broker=broker,
    )


@pytest.fixture
def rates() -> ExchangeRateSet:
    """Standard rates: USD 3.6, EUR 3.9, GBP 4.5 (ILS per unit)."""
    return create_rates()


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture(scope="function")
def client(session_factory):
    """
    TestClient with the quote cache bound to the test database.

    Rate limiting is switched off so tests can call endpoints freely.
    Individual tests override the service getters through
    app.dependency_overrides; all overrides are cleared afterwards.
    """
    from fastapi.testclient import TestClient

    from portfolio_valuation.database import get_db
    from portfolio_valuation.main import app
    from portfolio_valuation.middleware.rate_limit import limiter

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False

    with TestClient(app) as c:
        yield c

    limiter.enabled = True
    app.dependency_overrides.clear()
