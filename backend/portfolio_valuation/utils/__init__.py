# backend/portfolio_valuation/utils/__init__.py
"""
Cross-cutting helpers: logging setup, request context, money formatting.
"""

from portfolio_valuation.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from portfolio_valuation.utils.formatting import (
    round_money,
    round_percent,
    round_price,
    format_currency,
    format_percent,
    format_quantity,
)
from portfolio_valuation.utils.logging import setup_logging

__all__ = [
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "round_money",
    "round_percent",
    "round_price",
    "format_currency",
    "format_percent",
    "format_quantity",
]
