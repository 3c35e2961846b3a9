# backend/portfolio_valuation/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

This package contains all Pydantic schemas organized by domain:
- errors: Error response formats
- exchange_rates: Current FX rates into ILS
- market_data: Single-symbol price lookups
- validators: Reusable validation functions (symbol, currency)
- valuation: Valuation request and results

Usage:
    from portfolio_valuation.schemas import ValuationRequest, ValuationResponse
    from portfolio_valuation.schemas import ExchangeRatesResponse
    from portfolio_valuation.schemas import StockPriceResponse
    from portfolio_valuation.schemas import ErrorDetail
"""

from portfolio_valuation.schemas.errors import (
    ErrorDetail,
    ValidationErrorDetail,
)
from portfolio_valuation.schemas.exchange_rates import ExchangeRatesResponse
from portfolio_valuation.schemas.market_data import StockPriceResponse
from portfolio_valuation.schemas.valuation import (
    # Request
    HoldingInput,
    CashBalanceInput,
    AccountInput,
    ValuationRequest,
    # Response
    HoldingValuationResponse,
    CashBalanceValuationResponse,
    AccountValuationResponse,
    PortfolioSummaryResponse,
    AllocationItemResponse,
    ValuationResponse,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Exchange rates
    "ExchangeRatesResponse",
    # Market data
    "StockPriceResponse",
    # Valuation request
    "HoldingInput",
    "CashBalanceInput",
    "AccountInput",
    "ValuationRequest",
    # Valuation response
    "HoldingValuationResponse",
    "CashBalanceValuationResponse",
    "AccountValuationResponse",
    "PortfolioSummaryResponse",
    "AllocationItemResponse",
    "ValuationResponse",
]
