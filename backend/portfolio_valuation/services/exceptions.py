# backend/portfolio_valuation/services/exceptions.py
"""
Domain errors raised below the HTTP layer.

Nothing here knows about status codes; main.py owns that mapping.

Missing quotes and missing FX rates are not errors for the valuation engine
(they degrade the result and add warnings). These classes come from the
market data adapters, the single-quote lookup and input checks.

    ServiceError
    ├── ValidationError
    ├── MarketDataError
    │   ├── ProviderUnavailableError   retried
    │   ├── TickerNotFoundError
    │   ├── RateLimitError             retried
    │   └── PriceUnavailableError
    └── FXRateError
        ├── FXProviderError
        └── FXConversionError
"""

from portfolio_valuation.services.constants import PRICE_UNAVAILABLE_MESSAGE


class ServiceError(Exception):
    """Root of the hierarchy; `message` is what clients see."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ValidationError(ServiceError):
    """
    Input rejected outside Pydantic, e.g. a blank path symbol.

    Attributes:
        field: Name of the offending input, when known
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# -----------------------------------------------------------------------------
# Quotes
# -----------------------------------------------------------------------------


class MarketDataError(ServiceError):
    """Quote lookup failed. `provider` names the vendor, when one was involved."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """The vendor could not be reached or answered with an error. Transient."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider} unavailable: {reason}", provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """The vendor returned no usable price for the symbol. Retrying won't help."""

    def __init__(self, ticker: str, provider: str) -> None:
        super().__init__(f"No price data for '{ticker}' from {provider}", provider=provider)
        self.ticker = ticker


class RateLimitError(MarketDataError):
    """
    The vendor throttled us. Transient; retried with backoff.

    Attributes:
        retry_after: Seconds suggested by the vendor, if it sent any
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"{provider} rate limit hit"
        if retry_after:
            message = f"{message}, retry in {retry_after}s"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


class PriceUnavailableError(MarketDataError):
    """
    Neither the vendor nor the quote cache could price `symbol`.

    The message is the fixed client-facing text; `reason` keeps the
    underlying failure for logs.
    """

    def __init__(self, symbol: str, reason: str | None = None) -> None:
        self.symbol = symbol
        self.reason = reason
        super().__init__(PRICE_UNAVAILABLE_MESSAGE)


# -----------------------------------------------------------------------------
# Exchange rates
# -----------------------------------------------------------------------------


class FXRateError(ServiceError):
    """Exchange rate problem, optionally tied to a currency pair."""

    def __init__(
            self,
            message: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.base_currency = base_currency
        self.quote_currency = quote_currency
        super().__init__(message)


class FXProviderError(FXRateError):
    """The full ILS rate set could not be fetched."""

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"Exchange rates from {provider} failed: {reason}")


class FXConversionError(FXRateError):
    """A rate value cannot be used (zero, negative, or ILS not 1)."""

    def __init__(
            self,
            reason: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            f"Unusable exchange rate: {reason}",
            base_currency=base_currency,
            quote_currency=quote_currency,
        )


__all__ = [
    "ServiceError",
    "ValidationError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    "PriceUnavailableError",
    "FXRateError",
    "FXProviderError",
    "FXConversionError",
]
