# backend/portfolio_valuation/schemas/exchange_rates.py
"""
Pydantic schemas for Exchange Rate responses.

All rates read "1 unit of the currency = N ILS".
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field


class ExchangeRatesResponse(BaseModel):
    """Body returned by GET /exchange-rates."""

    success: bool = Field(default=True)
    rates: dict[str, Decimal] = Field(
        ...,
        description="Currency -> ILS value of one unit (ILS is always 1)",
        examples=[{"USD": "3.6", "EUR": "3.9", "GBP": "4.5", "ILS": "1"}],
    )
    base_currency: str = Field(default="ILS", description="Pivot currency of every rate")
    fetched_at: dt.datetime | None = Field(
        default=None,
        description="When the rates were fetched from the provider (UTC)"
    )
