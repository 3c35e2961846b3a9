# backend/portfolio_valuation/services/constants.py
"""
Centralized constants for the valuation services.

Single source of truth for currencies, FX symbols, the allocation
palette, client-facing messages and API rate limits.

Usage:
    from portfolio_valuation.services.constants import (
        PIVOT_CURRENCY,
        ALLOCATION_COLORS,
        RATE_LIMIT_VALUATION,
    )
"""


# =============================================================================
# CURRENCIES
# =============================================================================

# All exchange rates are quoted as "1 unit of X = N ILS"
PIVOT_CURRENCY: str = "ILS"

# Currencies that need a fetched rate into the pivot (ILS itself is fixed at 1)
RATE_CURRENCIES: tuple[str, ...] = ("USD", "EUR", "GBP")

# Last-resort rate source for a currency code outside the supported set
FALLBACK_RATE_CURRENCY: str = "USD"

# Yahoo Finance pair symbols for each rate currency (1 X = N ILS)
YAHOO_FX_SYMBOLS: dict[str, str] = {
    "USD": "USDILS=X",
    "EUR": "EURILS=X",
    "GBP": "GBPILS=X",
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "ILS": "₪",
    "EUR": "€",
    "GBP": "£",
}

# Quotes with no currency reported by the provider are assumed to be USD
DEFAULT_QUOTE_CURRENCY: str = "USD"


# =============================================================================
# ALLOCATION
# =============================================================================

# Chart palette; colours are assigned by sorted symbol order, cycling after 10
ALLOCATION_COLORS: tuple[str, ...] = (
    "#3B82F6",  # blue
    "#10B981",  # emerald
    "#F59E0B",  # amber
    "#EF4444",  # red
    "#8B5CF6",  # violet
    "#06B6D4",  # cyan
    "#F97316",  # orange
    "#EC4899",  # pink
    "#84CC16",  # lime
    "#6366F1",  # indigo
)


# =============================================================================
# MESSAGES
# =============================================================================

PRICE_UNAVAILABLE_MESSAGE: str = "Unable to fetch stock price. Please try again later."


# =============================================================================
# RATE LIMITING
# =============================================================================

# Format: "{count}/{period}" where period is second, minute, hour, day
RATE_LIMIT_DEFAULT: str = "100/minute"

# Valuation fans out to the quote provider, so it is kept tighter
RATE_LIMIT_VALUATION: str = "30/minute"

RATE_LIMIT_MARKET_DATA: str = "60/minute"

RATE_LIMIT_HEALTH: str = "300/minute"
