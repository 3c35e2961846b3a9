# backend/portfolio_valuation/services/valuation/conversion.py
"""
Currency conversion bridge.

Converts amounts between USD, EUR, GBP and ILS through the ILS pivot:

    in_ils = amount × rate(from)        # rate = "1 unit = N ILS"
    result = in_ils                     # if to == ILS
    result = in_ils ÷ rate(to)          # otherwise

Example (rates USD=3.6):
    100 USD -> 360 ILS
    360 ILS -> 100 USD

Degraded cases never raise; they return the amount with converted=False or
with a warning attached:

    same currency              -> amount unchanged, no rate lookup
    rates unavailable (None)   -> amount unchanged, warning
    unsupported target         -> amount unchanged, warning
    unsupported source         -> converted with the USD rate (then 1), warning
    zero/missing target rate   -> amount unchanged, warning

No rounding is applied here. Rounding belongs to the display edge.
"""

import logging
from decimal import Decimal

from portfolio_valuation.services.constants import (
    FALLBACK_RATE_CURRENCY,
    PIVOT_CURRENCY,
)
from portfolio_valuation.services.valuation.types import (
    ONE,
    ZERO,
    ConversionResult,
    CurrencyCode,
    ExchangeRateSet,
    normalize_currency,
)

logger = logging.getLogger(__name__)


def convert(
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        rates: ExchangeRateSet | None,
) -> ConversionResult:
    """
    Convert `amount` from one currency to another via the ILS pivot.

    Args:
        amount: Amount in from_currency
        from_currency: Source currency code (case-insensitive)
        to_currency: Target currency code (case-insensitive)
        rates: Rate set, or None when the FX source failed

    Returns:
        ConversionResult; `converted` is True only if a rate was applied
    """
    source = normalize_currency(from_currency)
    target = normalize_currency(to_currency)

    if source == target:
        return ConversionResult(amount=amount, converted=False)

    if rates is None:
        warning = f"Exchange rates unavailable: {source} amount not converted to {target}"
        logger.warning(warning)
        return ConversionResult(amount=amount, converted=False, warning=warning)

    if not CurrencyCode.is_supported(target):
        warning = f"Unsupported target currency '{target}': {source} amount passed through unconverted"
        logger.warning(warning)
        return ConversionResult(amount=amount, converted=False, warning=warning)

    target_rate = rates.rate_for(target)
    if not target_rate:
        warning = f"No usable {target} rate: {source} amount passed through unconverted"
        logger.warning(warning)
        return ConversionResult(amount=amount, converted=False, warning=warning)

    source_rate, warning = _source_rate(source, rates)

    amount_in_pivot = amount * source_rate
    if target == PIVOT_CURRENCY:
        converted_amount = amount_in_pivot
    else:
        converted_amount = amount_in_pivot / target_rate

    logger.debug(f"Converted {amount} {source} -> {converted_amount} {target}")
    return ConversionResult(amount=converted_amount, converted=True, warning=warning)


def convert_amount(
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        rates: ExchangeRateSet | None,
) -> Decimal:
    """Same as convert(), returning only the amount."""
    return convert(amount, from_currency, to_currency, rates).amount


def _source_rate(source: str, rates: ExchangeRateSet) -> tuple[Decimal, str | None]:
    """
    Rate for the source currency, applying the unsupported-currency policy.

    Unknown codes use the USD rate, or 1 if that is missing too. The
    fallback is logged and reported so the result is never silently trusted.
    """
    rate = rates.rate_for(source)
    if rate:
        return rate, None

    fallback = rates.rate_for(FALLBACK_RATE_CURRENCY)
    if fallback and fallback > ZERO:
        warning = (
            f"Unsupported currency '{source}': converted using the "
            f"{FALLBACK_RATE_CURRENCY} rate"
        )
    else:
        fallback = ONE
        warning = f"Unsupported currency '{source}': converted at a rate of 1"

    logger.warning(warning)
    return fallback, warning
