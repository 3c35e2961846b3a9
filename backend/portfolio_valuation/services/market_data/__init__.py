# backend/portfolio_valuation/services/market_data/__init__.py
"""
Market data services package.

This package contains:
- Abstract interface for market data providers (base.py)
- Yahoo Finance implementation (yahoo.py)
- Quote source with a database cache (price_service.py)

Usage:
    from portfolio_valuation.services.market_data import (
        CachedPriceSource,
        MarketDataProvider,
        PriceSnapshot,
        YahooFinanceProvider,
    )

Architecture:
    MarketDataProvider (ABC)
    └── YahooFinanceProvider (concrete)

    CachedPriceSource (PriceSource protocol)
    └── stock_price_history cache in front of a MarketDataProvider
"""

# Base provider interface and data classes
from portfolio_valuation.services.market_data.base import (
    MarketDataProvider,
    PriceSnapshot,
)
# Cached quote source
from portfolio_valuation.services.market_data.price_service import CachedPriceSource
# Concrete implementations
from portfolio_valuation.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    # Abstract interface
    "MarketDataProvider",
    # Data classes
    "PriceSnapshot",
    # Concrete implementations
    "YahooFinanceProvider",
    # Quote source
    "CachedPriceSource",
]
