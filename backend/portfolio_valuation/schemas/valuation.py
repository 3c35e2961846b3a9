# backend/portfolio_valuation/schemas/valuation.py
"""
Pydantic schemas for Portfolio Valuation.

These schemas handle:
- The valuation request (accounts, holdings, cash balances)
- Per-holding and per-account valuation results
- Portfolio totals and the allocation breakdown

Rounding (2 dp for money and percentages, 4 dp for prices) is applied by the
router when mapping engine results onto these models.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portfolio_valuation.schemas.validators import validate_currency_code, validate_symbol
from portfolio_valuation.services.valuation.types import CurrencyCode


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class HoldingInput(BaseModel):
    """A position to value."""

    id: str = Field(..., min_length=1, max_length=64, description="Holding identifier")
    symbol: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Ticker symbol (e.g., 'AAPL', 'TEVA.TA')",
        examples=["AAPL"],
    )
    quantity: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Shares held (fractional allowed)",
        examples=["10", "0.125"],
    )
    avg_cost_basis: Decimal = Field(
        ...,
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Average cost per share in the account currency",
    )
    name: str | None = Field(default=None, max_length=255, description="Display name")

    @field_validator('symbol')
    @classmethod
    def validate_and_normalize_symbol(cls, v: str) -> str:
        return validate_symbol(v)


class CashBalanceInput(BaseModel):
    """Cash held in one currency."""

    id: str = Field(..., min_length=1, max_length=64)
    currency: CurrencyCode = Field(..., description="ISO 4217 code (USD, EUR, GBP, ILS)")
    amount: Decimal = Field(
        ...,
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Cash amount in `currency`",
    )

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v: str) -> CurrencyCode:
        return validate_currency_code(v)


class AccountInput(BaseModel):
    """A brokerage account with its holdings and cash."""

    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    currency: CurrencyCode = Field(..., description="Account valuation currency")
    broker: str | None = Field(default=None, max_length=100)
    holdings: list[HoldingInput] = Field(default_factory=list)
    cash_balances: list[CashBalanceInput] = Field(default_factory=list)

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v: str) -> CurrencyCode:
        return validate_currency_code(v)

    @model_validator(mode='after')
    def validate_one_cash_balance_per_currency(self) -> "AccountInput":
        currencies = [balance.currency for balance in self.cash_balances]
        if len(currencies) != len(set(currencies)):
            raise ValueError("An account may hold at most one cash balance per currency")
        return self


class ValuationRequest(BaseModel):
    """Body of POST /valuation."""

    accounts: list[AccountInput] = Field(default_factory=list)


# =============================================================================
# HOLDING / CASH RESULT SCHEMAS
# =============================================================================

class HoldingValuationResponse(BaseModel):
    """Valuation of one holding, in the account currency."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    symbol: str
    name: str | None = None
    quantity: Decimal
    avg_cost_basis: Decimal
    current_price: Decimal = Field(..., description="Price per share in account currency")
    current_value: Decimal
    cost_basis: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal
    original_price: Decimal | None = Field(
        default=None,
        description="As-quoted price when the quote currency differs from the account currency"
    )
    original_price_currency: str | None = None
    price_available: bool = Field(..., description="False when no price could be fetched")
    price_converted: bool
    from_cache: bool


class CashBalanceValuationResponse(BaseModel):
    """Cash balance with its value in the account currency."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    currency: str
    amount: Decimal
    converted_amount: Decimal
    converted: bool


# =============================================================================
# ACCOUNT / PORTFOLIO SCHEMAS
# =============================================================================

class AccountValuationResponse(BaseModel):
    """Account totals in the account currency."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    broker: str | None = None
    currency: str
    total_value: Decimal
    total_holdings_value: Decimal
    total_cash: Decimal
    total_cost_basis: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal
    holdings: list[HoldingValuationResponse]
    cash_balances: list[CashBalanceValuationResponse]


class PortfolioSummaryResponse(BaseModel):
    """Straight sums of the account totals."""

    model_config = ConfigDict(from_attributes=True)

    total_value: Decimal
    total_holdings_value: Decimal
    total_cash: Decimal
    total_cost_basis: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal
    total_holdings: int = Field(..., description="Number of holdings across all accounts")


class AllocationItemResponse(BaseModel):
    """One slice of the allocation chart."""

    model_config = ConfigDict(from_attributes=True)

    symbol: str
    value: Decimal
    percentage: Decimal = Field(..., description="Share of total holdings value (0-100)")
    color: str = Field(..., description="Hex colour for charting")


class ValuationResponse(BaseModel):
    """Body returned by POST /valuation."""

    portfolio: PortfolioSummaryResponse
    accounts: list[AccountValuationResponse]
    allocation: list[AllocationItemResponse]
    rates: dict[str, Decimal] | None = Field(
        default=None,
        description="Rates used, as '1 unit = N ILS' (None when FX was unavailable)"
    )
    rates_fetched_at: datetime | None = None
    has_complete_data: bool = Field(
        ...,
        description="False when any price was missing or any conversion was skipped"
    )
    warnings: list[str] = Field(default_factory=list)
