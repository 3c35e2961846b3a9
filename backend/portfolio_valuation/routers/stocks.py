# backend/portfolio_valuation/routers/stocks.py
"""
Single-symbol price endpoint.

- GET /stocks/{symbol}/price - Latest price, served from the quote cache
  when fresh and falling back to a stale cached price when the provider fails
"""

from fastapi import APIRouter, Depends, Request

from portfolio_valuation.dependencies import get_price_source
from portfolio_valuation.middleware.rate_limit import limiter, RATE_LIMIT_MARKET_DATA
from portfolio_valuation.schemas.market_data import StockPriceResponse
from portfolio_valuation.schemas.validators import validate_symbol
from portfolio_valuation.services.exceptions import ValidationError
from portfolio_valuation.services.market_data import CachedPriceSource

router = APIRouter(
    prefix="/stocks",
    tags=["Market Data"],
)


@router.get(
    "/{symbol}/price",
    response_model=StockPriceResponse,
    summary="Get latest stock price",
)
@limiter.limit(RATE_LIMIT_MARKET_DATA)
def get_stock_price(
        request: Request,  # Required for rate limiting
        symbol: str,
        source: CachedPriceSource = Depends(get_price_source),
) -> StockPriceResponse:
    """
    Get the latest price for a symbol.

    Raises **400** for a blank or malformed symbol and **404** when no price
    is available from the provider or the cache.
    """
    try:
        normalized = validate_symbol(symbol)
    except ValueError as e:
        raise ValidationError(str(e), field="symbol")

    quote = source.get_quote(normalized)
    return StockPriceResponse(
        symbol=quote.symbol,
        price=quote.price,
        currency=quote.currency,
        timestamp=quote.timestamp,
        from_cache=quote.from_cache,
    )
