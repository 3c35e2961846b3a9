# backend/tests/services/test_valuation_service.py
"""
Integration tests for ValuationService.

The service is wired with fake price and rate sources, so these tests run
the whole engine (conversion, holding, account, portfolio, allocation)
without network or database.

Test Coverage:
- End-to-end valuation of a cross-currency holding
- Cash conversion into the account currency
- Graceful degradation on price and FX failures
- Symbol collection and source call behaviour
"""

import logging
from decimal import Decimal

from portfolio_valuation.services.valuation import QuoteError, ValuationService
from portfolio_valuation.utils.context import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from tests.conftest import (
    ExplodingSource,
    FakePriceSource,
    FakeRateSource,
    create_account,
    create_cash,
    create_holding,
    create_quote,
    create_rates,
)


def _service(quotes=(), rates=None) -> ValuationService:
    return ValuationService(
        price_source=FakePriceSource(quotes),
        rate_source=FakeRateSource(rates),
    )


# =============================================================================
# END-TO-END
# =============================================================================

class TestValuateEndToEnd:
    """Full valuations with healthy sources."""

    def test_ils_account_with_usd_quote(self):
        """AAPL × 10 at 175 USD in an ILS account, USD = 3.6 ILS."""
        service = _service([create_quote("AAPL", "175", "USD")], create_rates())
        account = create_account(
            currency="ILS",
            holdings=[create_holding("AAPL", quantity="10", avg_cost_basis="600")],
        )

        result = service.valuate([account])

        holding = result.accounts[0].holdings[0]
        assert holding.current_price == Decimal("630")
        assert holding.current_value == Decimal("6300")
        assert holding.cost_basis == Decimal("6000")
        assert holding.gain_loss == Decimal("300")
        assert holding.gain_loss_percent == Decimal("5")
        assert holding.original_price == Decimal("175")
        assert holding.original_price_currency == "USD"

        assert result.portfolio.total_value == Decimal("6300")
        assert result.portfolio.total_holdings == 1
        assert result.has_complete_data is True
        assert result.warnings == []

    def test_cash_conversion_adds_to_total(self):
        """USD account holding 360 ILS cash is worth 100 USD more."""
        service = _service([create_quote("AAPL", "100")], create_rates())
        account = create_account(
            currency="USD",
            holdings=[create_holding("AAPL", quantity="1", avg_cost_basis="90")],
            cash_balances=[create_cash("ILS", "360")],
        )

        result = service.valuate([account])

        summary = result.accounts[0]
        assert summary.total_cash == Decimal("100")
        assert summary.total_value == Decimal("200")
        assert result.portfolio.total_cash == Decimal("100")

    def test_accounts_keep_input_order(self):
        """Summaries come back in the order the accounts were given."""
        service = _service([], create_rates())
        accounts = [create_account(id="b", name="B"), create_account(id="a", name="A")]

        result = service.valuate(accounts)

        assert [a.id for a in result.accounts] == ["b", "a"]

    def test_rates_exposed_on_result(self):
        """The rate set used is returned for display."""
        rates = create_rates()
        result = _service([create_quote("AAPL", "1")], rates).valuate(
            [create_account(holdings=[create_holding("AAPL")])]
        )

        assert result.rates == rates

    def test_allocation_built(self):
        """Allocation covers every symbol with a positive value."""
        service = _service(
            [create_quote("AAPL", "100"), create_quote("MSFT", "300")], create_rates()
        )
        account = create_account(holdings=[
            create_holding("AAPL", quantity="1"),
            create_holding("MSFT", quantity="1"),
        ])

        result = service.valuate([account])

        assert [(i.symbol, i.percentage) for i in result.allocation] == [
            ("MSFT", Decimal("75")),
            ("AAPL", Decimal("25")),
        ]


# =============================================================================
# DEGRADATION
# =============================================================================

class TestValuateDegradation:
    """Failures never raise; they show up as flags and warnings."""

    def test_failed_quote_values_holding_at_zero(self):
        """XYZ fails, AAPL is still valued normally."""
        service = _service(
            [create_quote("AAPL", "100"), QuoteError(symbol="XYZ", error_reason="not found")],
            create_rates(),
        )
        account = create_account(holdings=[
            create_holding("AAPL", quantity="2", avg_cost_basis="80"),
            create_holding("XYZ", quantity="5", avg_cost_basis="10"),
        ])

        result = service.valuate([account])

        aapl, xyz = result.accounts[0].holdings
        assert aapl.current_value == Decimal("200")
        assert xyz.current_price == Decimal("0")
        assert xyz.current_value == Decimal("0")
        assert xyz.gain_loss == -xyz.cost_basis
        assert xyz.price_available is False
        assert result.has_complete_data is False
        assert any("XYZ" in w for w in result.warnings)

    def test_fx_failure_skips_conversion(self):
        """Without rates, foreign prices and cash pass through unconverted."""
        service = _service([create_quote("AAPL", "175", "USD")], rates=None)
        account = create_account(
            currency="ILS",
            holdings=[create_holding("AAPL", quantity="10", avg_cost_basis="600")],
            cash_balances=[create_cash("USD", "50")],
        )

        result = service.valuate([account])

        holding = result.accounts[0].holdings[0]
        assert holding.current_price == Decimal("175")
        assert holding.price_converted is False
        assert result.accounts[0].cash_balances[0].converted is False
        assert result.accounts[0].total_cash == Decimal("50")
        assert result.rates is None
        assert len(result.warnings) == 2

    def test_sources_raising_are_contained(self, caplog):
        """A source that raises degrades every symbol instead of failing."""
        service = ValuationService(price_source=ExplodingSource(), rate_source=ExplodingSource())
        account = create_account(
            holdings=[create_holding("AAPL", quantity="1", avg_cost_basis="10")],
        )

        with caplog.at_level(logging.ERROR):
            result = service.valuate([account])

        assert result.accounts[0].holdings[0].price_available is False
        assert result.rates is None
        assert "Price source failed" in caplog.text
        assert "Exchange rate source failed" in caplog.text

    def test_unsupported_account_currency_passes_through(self):
        """A CHF account keeps USD prices unconverted, with a warning."""
        service = _service([create_quote("AAPL", "100", "USD")], create_rates())
        account = create_account(
            currency="CHF",
            holdings=[create_holding("AAPL", quantity="1", avg_cost_basis="90")],
        )

        result = service.valuate([account])

        holding = result.accounts[0].holdings[0]
        assert holding.current_price == Decimal("100")
        assert holding.price_converted is False
        assert any("CHF" in w for w in result.warnings)


# =============================================================================
# SOURCE INTERACTION
# =============================================================================

class TestValuateSources:
    """How the service calls its sources."""

    def test_symbols_deduplicated_and_normalized(self):
        """Each symbol is requested once, upper-cased."""
        prices = FakePriceSource([create_quote("AAPL", "10")])
        service = ValuationService(price_source=prices, rate_source=FakeRateSource(create_rates()))
        accounts = [
            create_account(holdings=[create_holding("aapl"), create_holding("AAPL")]),
            create_account(holdings=[create_holding(" AAPL ")]),
        ]

        result = service.valuate(accounts)

        assert prices.requested == [["AAPL"]]
        assert all(h.price_available for a in result.accounts for h in a.holdings)

    def test_no_accounts_skips_sources(self):
        """Nothing to value means no fetches and an empty result."""
        prices = FakePriceSource()
        fx = FakeRateSource(create_rates())
        service = ValuationService(price_source=prices, rate_source=fx)

        result = service.valuate([])

        assert prices.requested == []
        assert fx.call_count == 0
        assert result.portfolio.total_value == Decimal("0")
        assert result.allocation == []

    def test_cash_only_accounts_still_fetch_rates(self):
        """Rates are fetched even when no symbol is held."""
        prices = FakePriceSource()
        fx = FakeRateSource(create_rates())
        service = ValuationService(price_source=prices, rate_source=fx)

        result = service.valuate([
            create_account(currency="USD", cash_balances=[create_cash("ILS", "36")]),
        ])

        assert prices.requested == []
        assert fx.call_count == 1
        assert result.portfolio.total_cash == Decimal("10")

    def test_correlation_id_reaches_worker_threads(self):
        """Log records from the fetch threads keep the request correlation ID."""
        seen: list[str | None] = []

        class _Capture(logging.Handler):
            def emit(self, record):
                seen.append(get_correlation_id())

        service_logger = logging.getLogger("portfolio_valuation.services.valuation.service")
        handler = _Capture(level=logging.ERROR)
        service_logger.addHandler(handler)
        service = ValuationService(price_source=ExplodingSource(), rate_source=ExplodingSource())

        set_correlation_id("trace-42")
        try:
            service.valuate([create_account(holdings=[create_holding("AAPL")])])
        finally:
            clear_correlation_id()
            service_logger.removeHandler(handler)

        assert seen == ["trace-42", "trace-42"]
