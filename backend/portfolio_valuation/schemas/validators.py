# backend/portfolio_valuation/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

This module provides:
- Symbol validation and normalization
- Currency code validation against the supported set

These validators ensure consistent input handling across all schemas.
"""

import re

from portfolio_valuation.services.valuation.types import CurrencyCode

# =============================================================================
# CONSTANTS
# =============================================================================

# Symbol: 1-20 chars. Letters/digits plus the separators Yahoo uses:
# dots (EIMI.L, TEVA.TA), dashes (BRK-B), carets (^GSPC), "=X" pairs
SYMBOL_PATTERN = re.compile(r'^[\^]?[A-Z0-9][A-Z0-9.\-=]{0,19}$')
SYMBOL_MAX_LENGTH = 20


# =============================================================================
# SYMBOL VALIDATION
# =============================================================================

def validate_symbol(value: str) -> str:
    """
    Validate and normalize a ticker symbol.

    Args:
        value: Raw symbol input

    Returns:
        Normalized symbol (uppercase, trimmed)

    Raises:
        ValueError: If symbol format is invalid
    """
    if not value or not value.strip():
        raise ValueError("Symbol cannot be empty")

    normalized = value.strip().upper()

    if len(normalized) > SYMBOL_MAX_LENGTH:
        raise ValueError(f"Symbol cannot exceed {SYMBOL_MAX_LENGTH} characters")

    if not SYMBOL_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid symbol format: '{normalized}'. "
            "Symbol must be alphanumeric and may include '.', '-', '=' or a leading '^'"
        )

    return normalized


# =============================================================================
# CURRENCY VALIDATION
# =============================================================================

def validate_currency_code(value: str | CurrencyCode) -> CurrencyCode:
    """
    Validate a currency code against the supported set.

    Args:
        value: Currency code in any case (e.g., "usd", " ILS ")

    Returns:
        The matching CurrencyCode

    Raises:
        ValueError: If the code is not one of USD, EUR, GBP, ILS
    """
    if isinstance(value, CurrencyCode):
        return value

    code = CurrencyCode.parse(value) if isinstance(value, str) else None
    if code is None:
        supported = ", ".join(c.value for c in CurrencyCode)
        raise ValueError(f"Unsupported currency: '{value}'. Supported: {supported}")
    return code
