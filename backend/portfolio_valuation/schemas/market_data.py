# backend/portfolio_valuation/schemas/market_data.py
"""
Pydantic schemas for single-symbol market data lookups.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class StockPriceResponse(BaseModel):
    """Body returned by GET /stocks/{symbol}/price."""

    model_config = ConfigDict(from_attributes=True)

    symbol: str = Field(..., description="Normalized ticker symbol")
    price: Decimal = Field(..., description="Latest price in `currency`")
    currency: str = Field(..., description="Quote currency (ISO 4217)")
    timestamp: dt.datetime = Field(..., description="When the price was fetched (UTC)")
    from_cache: bool = Field(
        ...,
        description="True when served from the quote cache instead of the provider"
    )
