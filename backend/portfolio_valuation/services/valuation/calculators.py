# backend/portfolio_valuation/services/valuation/calculators.py
"""
Valuation calculators.

Each calculator follows the Single Responsibility Principle:
- HoldingValuator: Values one holding from its quote, in account currency
- AccountAggregator: Sums holdings and converted cash into account totals
- PortfolioAggregator: Sums account totals into portfolio totals
- AllocationCalculator: Splits holdings value by symbol across accounts

Design Principles:
- Stateless (no instance state, pure functions)
- Receives all inputs explicitly (quotes and rates are fetched upstream)
- Returns new frozen result objects; nothing is mutated
- Uses Decimal for ALL financial calculations, unrounded

Usage:
    valuator = HoldingValuator()
    value = valuator.calculate(
        holding=holding,
        quote=quotes.get("AAPL"),
        account_currency="ILS",
        rates=rates,
    )
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from portfolio_valuation.services.constants import ALLOCATION_COLORS
from portfolio_valuation.services.valuation.conversion import convert
from portfolio_valuation.services.valuation.types import (
    ZERO,
    Account,
    AccountSummary,
    AllocationItem,
    CashBalance,
    CashBalanceValue,
    ExchangeRateSet,
    Holding,
    HoldingValue,
    PortfolioSummary,
    Quote,
    QuoteError,
    normalize_currency,
    normalize_symbol,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def calculate_gain_loss_percent(gain_loss: Decimal, cost_basis: Decimal) -> Decimal:
    """
    Gain/loss as a percentage of cost basis.

    Defined as 0 (not NaN or infinity) when the cost basis is zero.
    """
    if cost_basis <= ZERO:
        return ZERO
    return gain_loss / cost_basis * HUNDRED


# =============================================================================
# HOLDING VALUATOR
# =============================================================================

class HoldingValuator:
    """
    Values a single holding in its account's currency.

    Formula:
        current_value = quantity × current_price
        cost_basis = quantity × avg_cost_basis
        gain_loss = current_value - cost_basis

    Note:
        - A failed quote values the holding at price 0, so gain_loss equals
          minus the full cost basis until a price is available.
        - A quote in another currency is converted through the ILS pivot.
          The as-quoted price is kept in original_price/original_price_currency.
        - avg_cost_basis is never converted.
    """

    def calculate(
            self,
            holding: Holding,
            quote: Quote | QuoteError | None,
            account_currency: str,
            rates: ExchangeRateSet | None,
    ) -> HoldingValue:
        """
        Args:
            holding: The holding to value
            quote: Quote for holding.symbol, an error marker, or None if
                   the price source returned nothing for it
            account_currency: Currency of the owning account
            rates: Exchange rates, or None when FX is unavailable

        Returns:
            HoldingValue in account currency
        """
        account_currency = normalize_currency(account_currency)
        warnings: list[str] = []

        original_price: Decimal | None = None
        original_currency: str | None = None
        price_converted = False
        from_cache = False

        if not isinstance(quote, Quote):
            reason = quote.error_reason if isinstance(quote, QuoteError) else "no quote returned"
            logger.warning(f"Price unavailable for {holding.symbol}: {reason}")
            warnings.append(f"Price unavailable for {holding.symbol}: {reason}")
            current_price = ZERO
            price_available = False
        else:
            price_available = True
            from_cache = quote.from_cache
            quote_currency = normalize_currency(quote.currency)

            if quote_currency == account_currency:
                current_price = quote.price
            else:
                conversion = convert(quote.price, quote_currency, account_currency, rates)
                current_price = conversion.amount
                price_converted = conversion.converted
                original_price = quote.price
                original_currency = quote_currency
                if conversion.warning:
                    warnings.append(f"{holding.symbol}: {conversion.warning}")

        current_value = holding.quantity * current_price
        cost_basis = holding.quantity * holding.avg_cost_basis
        gain_loss = current_value - cost_basis

        return HoldingValue(
            id=holding.id,
            symbol=holding.symbol,
            name=holding.name,
            quantity=holding.quantity,
            avg_cost_basis=holding.avg_cost_basis,
            current_price=current_price,
            current_value=current_value,
            cost_basis=cost_basis,
            gain_loss=gain_loss,
            gain_loss_percent=calculate_gain_loss_percent(gain_loss, cost_basis),
            original_price=original_price,
            original_price_currency=original_currency,
            price_available=price_available,
            price_converted=price_converted,
            from_cache=from_cache,
            warnings=warnings,
        )


# =============================================================================
# ACCOUNT AGGREGATOR
# =============================================================================

class AccountAggregator:
    """
    Builds account totals from valued holdings and cash balances.

    Formula:
        total_holdings_value = Σ holding.current_value
        total_cash = Σ cash converted into account currency
        total_value = total_holdings_value + total_cash
        total_gain_loss = total_holdings_value - total_cost_basis

    Cash carries no cost basis, so it only affects total_value.
    Holding and cash order are kept as given.
    """

    def calculate(
            self,
            account: Account,
            valued_holdings: list[HoldingValue],
            rates: ExchangeRateSet | None,
    ) -> AccountSummary:
        account_currency = normalize_currency(account.currency)

        cash_values = [
            self.value_cash(balance, account_currency, rates)
            for balance in account.cash_balances
        ]

        total_holdings_value = sum((h.current_value for h in valued_holdings), ZERO)
        total_cost_basis = sum((h.cost_basis for h in valued_holdings), ZERO)
        total_cash = sum((c.converted_amount for c in cash_values), ZERO)
        total_gain_loss = total_holdings_value - total_cost_basis

        warnings = [w for h in valued_holdings for w in h.warnings]
        warnings.extend(c.warning for c in cash_values if c.warning)

        return AccountSummary(
            id=account.id,
            name=account.name,
            broker=account.broker,
            currency=account_currency,
            total_value=total_holdings_value + total_cash,
            total_holdings_value=total_holdings_value,
            total_cash=total_cash,
            total_cost_basis=total_cost_basis,
            total_gain_loss=total_gain_loss,
            total_gain_loss_percent=calculate_gain_loss_percent(total_gain_loss, total_cost_basis),
            holdings=list(valued_holdings),
            cash_balances=cash_values,
            warnings=warnings,
        )

    @staticmethod
    def value_cash(
            balance: CashBalance,
            account_currency: str,
            rates: ExchangeRateSet | None,
    ) -> CashBalanceValue:
        """
        Convert one cash balance into the account currency.

        Empty balances are not converted (0 is 0 in every currency).
        """
        currency = normalize_currency(balance.currency)

        if balance.amount <= ZERO:
            return CashBalanceValue(
                id=balance.id,
                currency=currency,
                amount=balance.amount,
                converted_amount=balance.amount,
            )

        conversion = convert(balance.amount, currency, account_currency, rates)
        warning = f"Cash {balance.id}: {conversion.warning}" if conversion.warning else None

        return CashBalanceValue(
            id=balance.id,
            currency=currency,
            amount=balance.amount,
            converted_amount=conversion.amount,
            converted=conversion.converted,
            warning=warning,
        )


# =============================================================================
# PORTFOLIO AGGREGATOR
# =============================================================================

class PortfolioAggregator:
    """
    Sums account summaries into portfolio totals.

    No currency conversion happens here: accounts are assumed to share a
    reporting currency established upstream.
    """

    def calculate(self, accounts: list[AccountSummary]) -> PortfolioSummary:
        total_holdings_value = sum((a.total_holdings_value for a in accounts), ZERO)
        total_cost_basis = sum((a.total_cost_basis for a in accounts), ZERO)
        total_cash = sum((a.total_cash for a in accounts), ZERO)
        total_gain_loss = total_holdings_value - total_cost_basis

        return PortfolioSummary(
            total_value=sum((a.total_value for a in accounts), ZERO),
            total_holdings_value=total_holdings_value,
            total_cash=total_cash,
            total_cost_basis=total_cost_basis,
            total_gain_loss=total_gain_loss,
            total_gain_loss_percent=calculate_gain_loss_percent(total_gain_loss, total_cost_basis),
            total_holdings=sum(len(a.holdings) for a in accounts),
        )


# =============================================================================
# ALLOCATION CALCULATOR
# =============================================================================

class AllocationCalculator:
    """
    Allocation of holdings value by symbol across all accounts.

    Formula:
        percentage = symbol_value / Σ symbol_value × 100

    Cash is not allocated, so percentages sum to 100. An empty list is
    returned when there is nothing to allocate.

    Colours are taken from ALLOCATION_COLORS by the symbol's position in
    sorted order, so the same symbols always get the same colours. Items
    are returned largest first (ties by symbol).
    """

    def calculate(self, accounts: list[AccountSummary]) -> list[AllocationItem]:
        value_by_symbol: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for account in accounts:
            for holding in account.holdings:
                value_by_symbol[normalize_symbol(holding.symbol)] += holding.current_value

        total_value = sum(value_by_symbol.values(), ZERO)
        if total_value <= ZERO:
            return []

        colors = {
            symbol: ALLOCATION_COLORS[index % len(ALLOCATION_COLORS)]
            for index, symbol in enumerate(sorted(value_by_symbol))
        }

        items = [
            AllocationItem(
                symbol=symbol,
                value=value,
                percentage=value / total_value * HUNDRED,
                color=colors[symbol],
            )
            for symbol, value in value_by_symbol.items()
        ]
        items.sort(key=lambda item: (-item.value, item.symbol))
        return items
