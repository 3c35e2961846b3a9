# backend/portfolio_valuation/services/valuation/service.py
"""
Valuation Service - entry point of the valuation engine.

valuate() is the single public operation:
    1. Collect the unique symbols held across all accounts
    2. Fetch quotes and exchange rates concurrently from the injected sources
    3. Value every holding (HoldingValuator)
    4. Total every account, including converted cash (AccountAggregator)
    5. Total the portfolio (PortfolioAggregator) and split it by symbol
       (AllocationCalculator)

Design Principles:
- Dependency Injection: price and rate sources injected via constructor
- Total: never raises for data-quality reasons. A failed quote values the
  holding at 0 and a failed FX fetch skips conversion; both are reported in
  ValuationResult.warnings
- No HTTP Knowledge and no caching of results: every call recomputes

Usage:
    from portfolio_valuation.services.valuation import ValuationService

    service = ValuationService(price_source=prices, rate_source=fx)
    result = service.valuate(accounts)
    result.portfolio.total_value
"""

from __future__ import annotations

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from portfolio_valuation.services.valuation.calculators import (
    AccountAggregator,
    AllocationCalculator,
    HoldingValuator,
    PortfolioAggregator,
)
from portfolio_valuation.services.valuation.types import (
    Account,
    AccountSummary,
    ExchangeRateSet,
    Quote,
    QuoteError,
    ValuationResult,
    normalize_symbol,
)

if TYPE_CHECKING:
    from portfolio_valuation.services.protocols import ExchangeRateSource, PriceSource

logger = logging.getLogger(__name__)


class ValuationService:
    """
    Orchestrates a live valuation snapshot for a set of accounts.

    Attributes:
        _price_source: Injected quote source
        _rate_source: Injected exchange rate source
        _holding_valuator: Per-holding calculator
        _account_aggregator: Per-account totals
        _portfolio_aggregator: Portfolio totals
        _allocation_calc: Allocation by symbol
    """

    def __init__(
            self,
            price_source: PriceSource | None = None,
            rate_source: ExchangeRateSource | None = None,
    ) -> None:
        """
        Initialize the valuation service.

        Args:
            price_source: Quote source. If None, a cached Yahoo Finance
                          source is created.
            rate_source: Exchange rate source. If None, a Yahoo Finance
                         FX source is created.
        """
        # Lazy imports to avoid circular dependencies
        if price_source is None:
            from portfolio_valuation.database import SessionLocal
            from portfolio_valuation.services.market_data import (
                CachedPriceSource,
                YahooFinanceProvider,
            )
            price_source = CachedPriceSource(
                provider=YahooFinanceProvider(),
                session_factory=SessionLocal,
            )
        if rate_source is None:
            from portfolio_valuation.services.fx_rate_service import YahooExchangeRateSource
            from portfolio_valuation.services.market_data import YahooFinanceProvider
            rate_source = YahooExchangeRateSource(provider=YahooFinanceProvider())

        self._price_source: PriceSource = price_source
        self._rate_source: ExchangeRateSource = rate_source

        self._holding_valuator = HoldingValuator()
        self._account_aggregator = AccountAggregator()
        self._portfolio_aggregator = PortfolioAggregator()
        self._allocation_calc = AllocationCalculator()

        logger.info("ValuationService initialized")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def valuate(self, accounts: list[Account]) -> ValuationResult:
        """
        Value every account and the portfolio as a whole.

        Args:
            accounts: Validated input accounts

        Returns:
            ValuationResult with portfolio totals, per-account summaries
            (input order), allocation and data quality warnings
        """
        symbols = sorted({
            normalize_symbol(holding.symbol)
            for account in accounts
            for holding in account.holdings
        })

        logger.info(
            f"Valuing {len(accounts)} accounts holding {len(symbols)} unique symbols"
        )

        quotes, rates = self._fetch_market_data(symbols) if accounts else ({}, None)

        summaries = [self._summarize_account(account, quotes, rates) for account in accounts]
        portfolio = self._portfolio_aggregator.calculate(summaries)
        allocation = self._allocation_calc.calculate(summaries)

        warnings = [w for summary in summaries for w in summary.warnings]

        logger.info(
            f"Valuation complete: total_value={portfolio.total_value}, "
            f"holdings={portfolio.total_holdings}, warnings={len(warnings)}"
        )

        return ValuationResult(
            portfolio=portfolio,
            accounts=summaries,
            allocation=allocation,
            rates=rates,
            warnings=warnings,
        )

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _summarize_account(
            self,
            account: Account,
            quotes: dict[str, Quote | QuoteError],
            rates: ExchangeRateSet | None,
    ) -> AccountSummary:
        valued_holdings = [
            self._holding_valuator.calculate(
                holding=holding,
                quote=quotes.get(normalize_symbol(holding.symbol)),
                account_currency=account.currency,
                rates=rates,
            )
            for holding in account.holdings
        ]
        return self._account_aggregator.calculate(account, valued_holdings, rates)

    def _fetch_market_data(
            self,
            symbols: list[str],
    ) -> tuple[dict[str, Quote | QuoteError], ExchangeRateSet | None]:
        """
        Fetch quotes and rates in parallel.

        Each task runs in a copy of the caller's context so log records
        keep the request correlation ID.
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="valuation") as executor:
            quotes_future = executor.submit(
                contextvars.copy_context().run, self._fetch_quotes, symbols
            )
            rates_future = executor.submit(
                contextvars.copy_context().run, self._fetch_rates
            )
            return quotes_future.result(), rates_future.result()

    def _fetch_quotes(self, symbols: list[str]) -> dict[str, Quote | QuoteError]:
        if not symbols:
            return {}
        try:
            return self._price_source.fetch_quotes(symbols)
        except Exception as e:
            # Price sources must not raise; degrade every symbol if one does
            logger.error(f"Price source failed for {len(symbols)} symbols: {e}")
            return {symbol: QuoteError(symbol=symbol, error_reason=str(e)) for symbol in symbols}

    def _fetch_rates(self) -> ExchangeRateSet | None:
        try:
            return self._rate_source.fetch_exchange_rates()
        except Exception as e:
            logger.error(f"Exchange rate source failed: {e}")
            return None
