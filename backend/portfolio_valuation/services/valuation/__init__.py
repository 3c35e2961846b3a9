# backend/portfolio_valuation/services/valuation/__init__.py
"""
Valuation engine package.

Turns holdings, quotes and exchange rates into a multi-currency snapshot:
per-holding value and gain, per-account totals, portfolio totals and the
allocation by symbol.

Usage:
    from portfolio_valuation.services.valuation import ValuationService

    service = ValuationService(price_source=prices, rate_source=fx)
    result = service.valuate(accounts)

Architecture:
    valuation/
    ├── __init__.py       # This file - package exports
    ├── types.py          # Internal data classes
    ├── conversion.py     # ILS-pivot currency conversion bridge
    ├── calculators.py    # Holding / account / portfolio / allocation
    └── service.py        # ValuationService (orchestrator)

Data Flow:
    PriceSource -> Quotes ─┐
    ExchangeRateSource ────┼─> HoldingValuator -> HoldingValue
                           └─> AccountAggregator -> AccountSummary
    AccountSummaries -> PortfolioAggregator -> PortfolioSummary
    AccountSummaries -> AllocationCalculator -> AllocationItem[]
"""

# Calculators (for testing / direct usage)
from portfolio_valuation.services.valuation.calculators import (
    HoldingValuator,
    AccountAggregator,
    PortfolioAggregator,
    AllocationCalculator,
    calculate_gain_loss_percent,
)
from portfolio_valuation.services.valuation.conversion import convert, convert_amount
# Main service
from portfolio_valuation.services.valuation.service import ValuationService
# Internal types
from portfolio_valuation.services.valuation.types import (
    CurrencyCode,
    Quote,
    QuoteError,
    ExchangeRateSet,
    Holding,
    CashBalance,
    Account,
    ConversionResult,
    HoldingValue,
    CashBalanceValue,
    AccountSummary,
    PortfolioSummary,
    AllocationItem,
    ValuationResult,
)

__all__ = [
    # Main service
    "ValuationService",

    # Conversion bridge
    "convert",
    "convert_amount",

    # Data types
    "CurrencyCode",
    "Quote",
    "QuoteError",
    "ExchangeRateSet",
    "Holding",
    "CashBalance",
    "Account",
    "ConversionResult",
    "HoldingValue",
    "CashBalanceValue",
    "AccountSummary",
    "PortfolioSummary",
    "AllocationItem",
    "ValuationResult",

    # Calculators (for testing)
    "HoldingValuator",
    "AccountAggregator",
    "PortfolioAggregator",
    "AllocationCalculator",
    "calculate_gain_loss_percent",
]
