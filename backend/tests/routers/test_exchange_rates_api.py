# backend/tests/routers/test_exchange_rates_api.py
"""
Integration tests for GET /exchange-rates.
"""

from decimal import Decimal

import pytest

from portfolio_valuation.dependencies import get_exchange_rate_source
from portfolio_valuation.main import app
from portfolio_valuation.services.exceptions import ProviderUnavailableError
from portfolio_valuation.services.fx_rate_service import YahooExchangeRateSource


@pytest.fixture
def rate_source(mock_provider) -> YahooExchangeRateSource:
    source = YahooExchangeRateSource(provider=mock_provider, cache_ttl_seconds=3600)
    app.dependency_overrides[get_exchange_rate_source] = lambda: source
    return source


class TestExchangeRatesEndpoint:
    """Tests for GET /exchange-rates."""

    def test_returns_rates(self, client, rate_source, mock_provider):
        """All three pairs available gives a full rate set."""
        mock_provider.add_price("USDILS=X", "3.6", currency="ILS")
        mock_provider.add_price("EURILS=X", "3.9", currency="ILS")
        mock_provider.add_price("GBPILS=X", "4.5", currency="ILS")

        response = client.get("/exchange-rates")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["base_currency"] == "ILS"
        assert {k: Decimal(v) for k, v in data["rates"].items()} == {
            "USD": Decimal("3.6"),
            "EUR": Decimal("3.9"),
            "GBP": Decimal("4.5"),
            "ILS": Decimal("1"),
        }
        assert data["fetched_at"] is not None

    def test_unavailable_returns_503(self, client, rate_source, mock_provider):
        """Any missing pair gives 503 in the ErrorDetail format."""
        mock_provider.add_price("USDILS=X", "3.6", currency="ILS")
        mock_provider.add_error("EURILS=X", ProviderUnavailableError("mock", "timeout"))
        mock_provider.add_price("GBPILS=X", "4.5", currency="ILS")

        response = client.get("/exchange-rates")

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "FXProviderError"
        assert data["message"] == "Failed to fetch exchange rates"
        assert data["details"] == {"provider": "mock"}

    def test_cached_between_requests(self, client, rate_source, mock_provider):
        """The second request is served from the in-memory rate cache."""
        for pair, rate in (("USDILS=X", "3.6"), ("EURILS=X", "3.9"), ("GBPILS=X", "4.5")):
            mock_provider.add_price(pair, rate, currency="ILS")

        client.get("/exchange-rates")
        client.get("/exchange-rates")

        assert len(mock_provider.calls) == 3
