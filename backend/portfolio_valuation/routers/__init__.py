# backend/portfolio_valuation/routers/__init__.py
"""
API routers for the Portfolio Valuation Engine.

Each router handles a specific domain:
- valuation: Multi-account portfolio valuation
- exchange_rates: Current FX rates into ILS
- stocks: Single-symbol latest price
"""

from portfolio_valuation.routers.exchange_rates import router as exchange_rates_router
from portfolio_valuation.routers.stocks import router as stocks_router
from portfolio_valuation.routers.valuation import router as valuation_router

__all__ = [
    "valuation_router",
    "exchange_rates_router",
    "stocks_router",
]
