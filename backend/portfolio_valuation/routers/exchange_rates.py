# backend/portfolio_valuation/routers/exchange_rates.py
"""
Exchange rate endpoint.

- GET /exchange-rates - Current USD/EUR/GBP rates into ILS

Returns 503 (via the FXProviderError handler) when the rate set cannot be
fetched; partial rates are never returned.
"""

from fastapi import APIRouter, Depends, Request

from portfolio_valuation.dependencies import get_exchange_rate_source
from portfolio_valuation.middleware.rate_limit import limiter, RATE_LIMIT_MARKET_DATA
from portfolio_valuation.schemas.exchange_rates import ExchangeRatesResponse
from portfolio_valuation.services.constants import PIVOT_CURRENCY
from portfolio_valuation.services.fx_rate_service import YahooExchangeRateSource

router = APIRouter(
    prefix="/exchange-rates",
    tags=["Exchange Rates"],
)


@router.get(
    "",
    response_model=ExchangeRatesResponse,
    summary="Get current exchange rates",
    response_description="Rates as '1 unit = N ILS'",
)
@limiter.limit(RATE_LIMIT_MARKET_DATA)
def get_exchange_rates(
        request: Request,  # Required for rate limiting
        source: YahooExchangeRateSource = Depends(get_exchange_rate_source),
) -> ExchangeRatesResponse:
    """
    Get the current exchange rates used for valuation.

    Rates are cached for an hour. Raises **503** if any rate is unavailable.
    """
    rates = source.get_exchange_rates()
    return ExchangeRatesResponse(
        success=True,
        rates=rates.as_dict(),
        base_currency=PIVOT_CURRENCY,
        fetched_at=rates.fetched_at,
    )
