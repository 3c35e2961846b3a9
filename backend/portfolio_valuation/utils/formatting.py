# backend/portfolio_valuation/utils/formatting.py
"""
Display rounding and formatting for valuation figures.

The engine computes with unrounded Decimals. Rounding happens here, once,
at the API/display edge:
- round_money: 2 decimal places (values, totals, gain/loss)
- round_percent: 2 decimal places
- round_price: 4 decimal places (per-share prices can be sub-cent)

The API returns numbers only; the string helpers below are for UI and
report code built on top of the package, and nothing in the request path
calls them:
    format_currency(Decimal("1234.5"), "ILS")  -> "₪1,234.50"
    format_percent(Decimal("5"))               -> "+5.00%"
    format_quantity(Decimal("2.5"))            -> "2.5000"
"""

from decimal import Decimal, ROUND_HALF_UP

from portfolio_valuation.services.constants import CURRENCY_SYMBOLS

MONEY_QUANTUM = Decimal("0.01")
PERCENT_QUANTUM = Decimal("0.01")
PRICE_QUANTUM = Decimal("0.0001")
QUANTITY_QUANTUM = Decimal("0.0001")


# =============================================================================
# ROUNDING
# =============================================================================

def round_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def round_percent(value: Decimal) -> Decimal:
    return value.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def round_price(value: Decimal) -> Decimal:
    return value.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


# =============================================================================
# FORMATTING
# =============================================================================

def currency_with_symbol(currency: str) -> str:
    """"$ USD" style label; bare code when no symbol is known."""
    code = currency.strip().upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    return f"{symbol} {code}" if symbol else code


def format_currency(amount: Decimal, currency: str = "USD") -> str:
    """
    Format an amount with its currency symbol and two decimals.

    Known currencies get a prefix symbol ("-$1,234.56"). Unknown codes are
    written out in front of the number ("CHF 1,234.56").
    """
    code = currency.strip().upper()
    rounded = round_money(amount)
    digits = f"{abs(rounded):,.2f}"
    sign = "-" if rounded < 0 else ""

    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{code} {digits}"


def format_percent(value: Decimal) -> str:
    """Signed percentage with two decimals; zero is shown as "+0.00%"."""
    rounded = round_percent(value)
    sign = "+" if rounded >= 0 else ""
    return f"{sign}{rounded:.2f}%"


def format_quantity(value: Decimal) -> str:
    """Whole share counts print as integers, fractional ones with 4 decimals."""
    if value == value.to_integral_value():
        return str(int(value))
    return f"{value.quantize(QUANTITY_QUANTUM, rounding=ROUND_HALF_UP):.4f}"
