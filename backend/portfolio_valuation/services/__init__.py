# backend/portfolio_valuation/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates business logic
separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive their data sources via constructor injection
- Are easily testable with fakes satisfying the protocols

Usage:
    from portfolio_valuation.services import ValuationService
    from portfolio_valuation.services import CachedPriceSource, YahooExchangeRateSource
    from portfolio_valuation.services import (
        PriceUnavailableError,
        FXProviderError,
    )

Architecture:
    services/
    ├── __init__.py                  # This file - main exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Currencies, cache windows, palette
    ├── protocols.py                 # PriceSource / ExchangeRateSource
    ├── fx_rate_service.py           # Exchange rates into ILS
    ├── market_data/                 # Market data package
    │   ├── base.py                  # Abstract provider interface
    │   ├── yahoo.py                 # Yahoo Finance implementation
    │   └── price_service.py         # Quote source with DB cache
    └── valuation/                   # Valuation engine
        ├── service.py               # Main valuation orchestrator
        ├── types.py                 # Valuation data types
        ├── conversion.py            # Currency conversion bridge
        └── calculators.py           # Holding / account / portfolio math
"""

# Exceptions
from portfolio_valuation.services.exceptions import (
    # Base exceptions
    ServiceError,
    ValidationError,
    # Market data exceptions
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
    PriceUnavailableError,
    # FX rate exceptions
    FXRateError,
    FXProviderError,
    FXConversionError,
)
# Exchange rates
from portfolio_valuation.services.fx_rate_service import YahooExchangeRateSource
# Market Data
from portfolio_valuation.services.market_data import (
    MarketDataProvider,
    PriceSnapshot,
    YahooFinanceProvider,
    CachedPriceSource,
)
# Interfaces
from portfolio_valuation.services.protocols import PriceSource, ExchangeRateSource
# Valuation Service
from portfolio_valuation.services.valuation import ValuationService

__all__ = [
    # ==========================================================================
    # Services
    # ==========================================================================
    "ValuationService",
    "CachedPriceSource",
    "YahooExchangeRateSource",
    # Market Data Provider
    "MarketDataProvider",
    "PriceSnapshot",
    "YahooFinanceProvider",
    # Interfaces
    "PriceSource",
    "ExchangeRateSource",

    # ==========================================================================
    # Exceptions
    # ==========================================================================
    # Base
    "ServiceError",
    "ValidationError",
    # Market data
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    "PriceUnavailableError",
    # FX rate
    "FXRateError",
    "FXProviderError",
    "FXConversionError",
]
