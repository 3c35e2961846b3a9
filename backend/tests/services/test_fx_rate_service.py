# backend/tests/services/test_fx_rate_service.py
"""
Tests for YahooExchangeRateSource.

Test Coverage:
- Building the rate set from the three FX pairs
- In-memory caching and cache expiry
- All-or-nothing failure handling (never cached)
- get_exchange_rates raising FXProviderError
"""

import logging
from decimal import Decimal

import pytest

from portfolio_valuation.services.exceptions import (
    FXProviderError,
    ProviderUnavailableError,
)
from portfolio_valuation.services.fx_rate_service import YahooExchangeRateSource


@pytest.fixture
def fx_provider(mock_provider):
    """Mock provider answering the three ILS pairs."""
    mock_provider.add_price("USDILS=X", "3.6", currency="ILS")
    mock_provider.add_price("EURILS=X", "3.9", currency="ILS")
    mock_provider.add_price("GBPILS=X", "4.5", currency="ILS")
    return mock_provider


@pytest.fixture
def fx_source(fx_provider) -> YahooExchangeRateSource:
    return YahooExchangeRateSource(provider=fx_provider, cache_ttl_seconds=3600)


class TestFetchExchangeRates:
    """Tests for fetch_exchange_rates."""

    def test_builds_rate_set(self, fx_source):
        """Each pair price becomes the rate for its currency."""
        rates = fx_source.fetch_exchange_rates()

        assert rates is not None
        assert rates.as_dict() == {
            "USD": Decimal("3.6"),
            "EUR": Decimal("3.9"),
            "GBP": Decimal("4.5"),
            "ILS": Decimal("1"),
        }
        assert rates.fetched_at is not None

    def test_requests_all_pairs(self, fx_source, fx_provider):
        """USDILS=X, EURILS=X and GBPILS=X are each fetched once."""
        fx_source.fetch_exchange_rates()

        assert sorted(fx_provider.calls) == ["EURILS=X", "GBPILS=X", "USDILS=X"]

    def test_second_call_uses_cache(self, fx_source, fx_provider):
        """A complete set is reused within the TTL."""
        first = fx_source.fetch_exchange_rates()
        second = fx_source.fetch_exchange_rates()

        assert second is first
        assert len(fx_provider.calls) == 3

    def test_zero_ttl_always_refetches(self, fx_provider):
        """With no TTL the cache never serves."""
        source = YahooExchangeRateSource(provider=fx_provider, cache_ttl_seconds=0)

        source.fetch_exchange_rates()
        source.fetch_exchange_rates()

        assert len(fx_provider.calls) == 6

    def test_clear_cache(self, fx_source, fx_provider):
        """clear_cache forces a new fetch."""
        fx_source.fetch_exchange_rates()
        fx_source.clear_cache()
        fx_source.fetch_exchange_rates()

        assert len(fx_provider.calls) == 6

    def test_one_failed_pair_gives_none(self, fx_source, fx_provider, caplog):
        """Partial rate sets are never returned."""
        fx_provider.add_error("EURILS=X", ProviderUnavailableError("mock", "timeout"))

        with caplog.at_level(logging.WARNING):
            rates = fx_source.fetch_exchange_rates()

        assert rates is None
        assert "Exchange rates unavailable" in caplog.text
        assert "EURILS=X" in caplog.text

    def test_failure_is_not_cached(self, fx_source, fx_provider):
        """After a failure the next call goes back to the provider."""
        fx_provider.add_error("GBPILS=X", ProviderUnavailableError("mock", "timeout"))
        assert fx_source.fetch_exchange_rates() is None

        fx_provider.add_price("GBPILS=X", "4.5", currency="ILS")
        rates = fx_source.fetch_exchange_rates()

        assert rates is not None
        assert rates.rate_for("GBP") == Decimal("4.5")

    def test_zero_rate_gives_none(self, fx_source, fx_provider):
        """A non-positive rate invalidates the whole set."""
        fx_provider.add_price("USDILS=X", "0", currency="ILS")

        assert fx_source.fetch_exchange_rates() is None


class TestGetExchangeRates:
    """Tests for the raising variant used by the HTTP layer."""

    def test_returns_rates(self, fx_source):
        """Healthy provider returns the set."""
        assert fx_source.get_exchange_rates().rate_for("USD") == Decimal("3.6")

    def test_raises_when_unavailable(self, mock_provider):
        """No pairs configured raises FXProviderError."""
        source = YahooExchangeRateSource(provider=mock_provider, cache_ttl_seconds=3600)

        with pytest.raises(FXProviderError) as exc_info:
            source.get_exchange_rates()

        assert exc_info.value.provider == "mock"
