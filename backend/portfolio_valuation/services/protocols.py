# backend/portfolio_valuation/services/protocols.py
"""
Protocol interfaces for service dependency injection.

ValuationService depends on these two shapes only, never on Yahoo Finance
or the database directly. Using typing.Protocol enables structural subtyping:
- CachedPriceSource and YahooExchangeRateSource satisfy them unchanged
- Test fakes work without inheritance
"""

from __future__ import annotations

from typing import Iterable, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from portfolio_valuation.services.valuation.types import (
        ExchangeRateSet,
        Quote,
        QuoteError,
    )


class PriceSource(Protocol):
    """
    Interface required by ValuationService for quotes.

    Contract:
        - One entry per unique, normalized (upper-case) non-blank symbol
        - Per-symbol failures are QuoteError values, never exceptions
        - Duplicate, blank or mixed-case symbols are tolerated
    """

    def fetch_quotes(self, symbols: Iterable[str]) -> dict[str, Quote | QuoteError]:
        ...


class ExchangeRateSource(Protocol):
    """
    Interface required by ValuationService for FX rates.

    Contract:
        - Returns a complete ExchangeRateSet, or None on any failure
        - Never returns a partial set
    """

    def fetch_exchange_rates(self) -> ExchangeRateSet | None:
        ...
