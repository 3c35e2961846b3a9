# backend/portfolio_valuation/services/valuation/types.py
"""
Internal data types for the valuation engine.

These dataclasses are used internally by the conversion bridge, the
calculators and the ValuationService. They are NOT Pydantic schemas; those
live in portfolio_valuation/schemas/valuation.py for API serialization.

Design Principles:
- Immutable value objects (frozen=True)
- Decimal for ALL financial values (never float)
- Currency codes are normalized upper-case strings. CurrencyCode enumerates
  the supported ones; anything else is carried through as a plain string and
  handled by the explicit unsupported-currency policy of the bridge
- Warnings accumulate for data quality tracking instead of raising

Type Hierarchy:
    Inputs:
        Holding             - Position in one symbol inside an account
        CashBalance         - Cash held in one currency inside an account
        Account             - Holdings + cash with a native currency
    Adapter outputs:
        Quote / QuoteError  - Per-symbol price or failure marker
        ExchangeRateSet     - USD/EUR/GBP -> ILS rates (all or nothing)
    Engine outputs:
        ConversionResult    - Converted amount + whether conversion happened
        HoldingValue        - Valued holding in account currency
        CashBalanceValue    - Cash balance with its converted amount
        AccountSummary      - Account totals
        PortfolioSummary    - Portfolio totals
        AllocationItem      - One slice of the allocation chart
        ValuationResult     - Everything returned by ValuationService.valuate()
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from portfolio_valuation.services.constants import PIVOT_CURRENCY
from portfolio_valuation.services.exceptions import FXConversionError

ZERO = Decimal("0")
ONE = Decimal("1")


# =============================================================================
# CURRENCIES
# =============================================================================

class CurrencyCode(str, enum.Enum):
    """Currencies with a known rate into the ILS pivot."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    ILS = "ILS"

    @classmethod
    def parse(cls, value: str | None) -> CurrencyCode | None:
        """
        Case-insensitive lookup.

        Returns:
            The matching member, or None for unknown/blank codes
        """
        if not value:
            return None
        try:
            return cls(normalize_currency(value))
        except ValueError:
            return None

    @classmethod
    def is_supported(cls, value: str | None) -> bool:
        return cls.parse(value) is not None


def normalize_currency(value: str) -> str:
    """Strip and upper-case a currency code ("usd " -> "USD")."""
    return value.strip().upper()


def normalize_symbol(value: str) -> str:
    """Strip and upper-case a ticker symbol."""
    return value.strip().upper()


# =============================================================================
# ADAPTER OUTPUTS
# =============================================================================

@dataclass(frozen=True)
class Quote:
    """
    Most recent price of one symbol, as reported by the price source.

    Attributes:
        symbol: Normalized ticker (e.g., "AAPL")
        price: Price per share in `currency`
        currency: Currency the price is quoted in
        timestamp: When the price was observed
        from_cache: True when served from the quote cache instead of live
    """

    symbol: str
    price: Decimal
    currency: str
    timestamp: datetime
    from_cache: bool = False

    def __post_init__(self) -> None:
        if self.price < ZERO:
            raise ValueError(f"price must be non-negative, got {self.price}")


@dataclass(frozen=True)
class QuoteError:
    """Per-symbol failure marker returned instead of a Quote."""

    symbol: str
    error_reason: str


@dataclass(frozen=True)
class ExchangeRateSet:
    """
    Same-instant exchange rates into the ILS pivot.

    Every rate reads "1 unit of this currency = N ILS", so ILS is always 1.
    The set is all or nothing: the FX source returns None rather than a set
    with a missing rate.

    Raises:
        FXConversionError: If a rate is not positive or ILS is not 1
    """

    usd: Decimal
    eur: Decimal
    gbp: Decimal
    ils: Decimal = ONE
    fetched_at: datetime | None = None

    def __post_init__(self) -> None:
        for code, rate in (("USD", self.usd), ("EUR", self.eur), ("GBP", self.gbp)):
            if rate is None or rate <= ZERO:
                raise FXConversionError(
                    f"rate must be positive, got {rate}",
                    base_currency=code,
                    quote_currency=PIVOT_CURRENCY,
                )
        if self.ils != ONE:
            raise FXConversionError(
                f"pivot rate must be 1, got {self.ils}",
                base_currency=PIVOT_CURRENCY,
                quote_currency=PIVOT_CURRENCY,
            )

    @classmethod
    def from_mapping(
            cls,
            rates: dict[str, Decimal],
            fetched_at: datetime | None = None,
    ) -> ExchangeRateSet:
        """Build from {"USD": ..., "EUR": ..., "GBP": ...}; ILS may be omitted."""
        normalized = {normalize_currency(k): v for k, v in rates.items()}
        return cls(
            usd=normalized.get("USD"),
            eur=normalized.get("EUR"),
            gbp=normalized.get("GBP"),
            ils=normalized.get("ILS", ONE),
            fetched_at=fetched_at,
        )

    def rate_for(self, currency: str) -> Decimal | None:
        """ILS value of one unit of `currency`, or None if unsupported."""
        code = CurrencyCode.parse(currency)
        if code is None:
            return None
        return self.as_dict()[code.value]

    def as_dict(self) -> dict[str, Decimal]:
        return {
            CurrencyCode.USD.value: self.usd,
            CurrencyCode.EUR.value: self.eur,
            CurrencyCode.GBP.value: self.gbp,
            CurrencyCode.ILS.value: self.ils,
        }


# =============================================================================
# INPUTS
# =============================================================================

@dataclass(frozen=True)
class Holding:
    """
    A position in one symbol.

    Attributes:
        id: Identifier assigned by the persistence layer
        symbol: Ticker symbol
        quantity: Shares held (may be fractional)
        avg_cost_basis: Weighted average cost per share, already in the
                        owning account's currency (never converted)
        name: Display name (optional)
    """

    id: str
    symbol: str
    quantity: Decimal
    avg_cost_basis: Decimal
    name: str | None = None


@dataclass(frozen=True)
class CashBalance:
    """Cash held in a single currency."""

    id: str
    currency: str
    amount: Decimal


@dataclass(frozen=True)
class Account:
    """
    A brokerage account.

    Attributes:
        currency: Native valuation currency; every monetary output of the
                  account is expressed in it
    """

    id: str
    name: str
    currency: str
    holdings: list[Holding] = field(default_factory=list)
    cash_balances: list[CashBalance] = field(default_factory=list)
    broker: str | None = None


# =============================================================================
# ENGINE OUTPUTS
# =============================================================================

@dataclass(frozen=True)
class ConversionResult:
    """
    Outcome of one currency conversion.

    Attributes:
        amount: Converted amount, or the original amount when conversion
                was skipped
        converted: True only when a rate was actually applied
        warning: Why conversion was skipped or degraded (None when clean)
    """

    amount: Decimal
    converted: bool
    warning: str | None = None


@dataclass(frozen=True)
class HoldingValue:
    """
    Valuation of one holding, in the owning account's currency.

    Attributes:
        current_price: Price per share after conversion into account currency
        current_value: quantity × current_price
        cost_basis: quantity × avg_cost_basis
        gain_loss: current_value - cost_basis
        gain_loss_percent: gain_loss / cost_basis × 100 (0 when cost_basis is 0)
        original_price: As-quoted price when the quote currency differs
        original_price_currency: Currency of original_price
        price_available: False when the price source failed for the symbol
        price_converted: True when current_price was converted from another currency
        from_cache: True when the quote came from the quote cache
        warnings: Data quality notes for this holding

    Note:
        When FX rates are unavailable, current_price stays in
        original_price_currency and price_converted is False.
    """

    id: str
    symbol: str
    name: str | None
    quantity: Decimal
    avg_cost_basis: Decimal
    current_price: Decimal
    current_value: Decimal
    cost_basis: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal
    original_price: Decimal | None = None
    original_price_currency: str | None = None
    price_available: bool = True
    price_converted: bool = False
    from_cache: bool = False
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CashBalanceValue:
    """Cash balance with its value in the owning account's currency."""

    id: str
    currency: str
    amount: Decimal
    converted_amount: Decimal
    converted: bool = False
    warning: str | None = None


@dataclass(frozen=True)
class AccountSummary:
    """
    Account-level totals in the account's currency.

    total_value = total_holdings_value + total_cash. Gain/loss figures are
    computed from holdings only; cash has no cost basis.
    """

    id: str
    name: str
    broker: str | None
    currency: str
    total_value: Decimal
    total_holdings_value: Decimal
    total_cash: Decimal
    total_cost_basis: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal
    holdings: list[HoldingValue] = field(default_factory=list)
    cash_balances: list[CashBalanceValue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PortfolioSummary:
    """Straight sums of the account summaries (no cross-currency conversion)."""

    total_value: Decimal
    total_holdings_value: Decimal
    total_cash: Decimal
    total_cost_basis: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal
    total_holdings: int


@dataclass(frozen=True)
class AllocationItem:
    """One symbol's share of total holdings value across all accounts."""

    symbol: str
    value: Decimal
    percentage: Decimal
    color: str


@dataclass(frozen=True)
class ValuationResult:
    """
    Complete output of ValuationService.valuate().

    Attributes:
        portfolio: Portfolio totals
        accounts: One summary per input account, input order preserved
        allocation: Allocation by symbol, largest first
        rates: Exchange rates used (None when the FX source failed)
        warnings: Every data quality warning raised while valuing
    """

    portfolio: PortfolioSummary
    accounts: list[AccountSummary]
    allocation: list[AllocationItem]
    rates: ExchangeRateSet | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def has_complete_data(self) -> bool:
        """True when every price was found and every conversion applied."""
        return not self.warnings
