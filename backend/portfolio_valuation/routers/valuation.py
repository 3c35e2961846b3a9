# backend/portfolio_valuation/routers/valuation.py
"""
Portfolio valuation endpoint.

- POST /valuation - Value a set of accounts with live quotes and FX rates

The request carries the accounts themselves; nothing is read from or written
to storage besides the quote cache behind the price source.
"""

from fastapi import APIRouter, Depends, Request

from portfolio_valuation.dependencies import get_valuation_service
from portfolio_valuation.middleware.rate_limit import limiter, RATE_LIMIT_VALUATION
from portfolio_valuation.schemas.valuation import (
    AccountInput,
    ValuationRequest,
    HoldingValuationResponse,
    CashBalanceValuationResponse,
    AccountValuationResponse,
    PortfolioSummaryResponse,
    AllocationItemResponse,
    ValuationResponse,
)
from portfolio_valuation.services.valuation import (
    Account,
    AccountSummary,
    AllocationItem,
    CashBalance,
    CashBalanceValue,
    Holding,
    HoldingValue,
    PortfolioSummary,
    ValuationResult,
    ValuationService,
)
from portfolio_valuation.utils.formatting import round_money, round_percent, round_price

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/valuation",
    tags=["Valuation"],
)


# =============================================================================
# MAPPER FUNCTIONS (Request Schemas -> Internal Types)
# =============================================================================

def _to_account(account: AccountInput) -> Account:
    """Map a validated request account to the engine input type."""
    return Account(
        id=account.id,
        name=account.name,
        currency=account.currency.value,
        broker=account.broker,
        holdings=[
            Holding(
                id=h.id,
                symbol=h.symbol,
                quantity=h.quantity,
                avg_cost_basis=h.avg_cost_basis,
                name=h.name,
            )
            for h in account.holdings
        ],
        cash_balances=[
            CashBalance(id=c.id, currency=c.currency.value, amount=c.amount)
            for c in account.cash_balances
        ],
    )


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_holding(holding: HoldingValue) -> HoldingValuationResponse:
    """Map internal HoldingValue to Pydantic schema."""
    return HoldingValuationResponse(
        id=holding.id,
        symbol=holding.symbol,
        name=holding.name,
        quantity=holding.quantity,
        avg_cost_basis=round_price(holding.avg_cost_basis),
        current_price=round_price(holding.current_price),
        current_value=round_money(holding.current_value),
        cost_basis=round_money(holding.cost_basis),
        gain_loss=round_money(holding.gain_loss),
        gain_loss_percent=round_percent(holding.gain_loss_percent),
        original_price=(
            round_price(holding.original_price)
            if holding.original_price is not None else None
        ),
        original_price_currency=holding.original_price_currency,
        price_available=holding.price_available,
        price_converted=holding.price_converted,
        from_cache=holding.from_cache,
    )


def _map_cash_balance(cash: CashBalanceValue) -> CashBalanceValuationResponse:
    """Map internal CashBalanceValue to Pydantic schema."""
    return CashBalanceValuationResponse(
        id=cash.id,
        currency=cash.currency,
        amount=round_money(cash.amount),
        converted_amount=round_money(cash.converted_amount),
        converted=cash.converted,
    )


def _map_account(account: AccountSummary) -> AccountValuationResponse:
    """Map internal AccountSummary to Pydantic schema."""
    return AccountValuationResponse(
        id=account.id,
        name=account.name,
        broker=account.broker,
        currency=account.currency,
        total_value=round_money(account.total_value),
        total_holdings_value=round_money(account.total_holdings_value),
        total_cash=round_money(account.total_cash),
        total_cost_basis=round_money(account.total_cost_basis),
        total_gain_loss=round_money(account.total_gain_loss),
        total_gain_loss_percent=round_percent(account.total_gain_loss_percent),
        holdings=[_map_holding(h) for h in account.holdings],
        cash_balances=[_map_cash_balance(c) for c in account.cash_balances],
    )


def _map_portfolio(portfolio: PortfolioSummary) -> PortfolioSummaryResponse:
    """Map internal PortfolioSummary to Pydantic schema."""
    return PortfolioSummaryResponse(
        total_value=round_money(portfolio.total_value),
        total_holdings_value=round_money(portfolio.total_holdings_value),
        total_cash=round_money(portfolio.total_cash),
        total_cost_basis=round_money(portfolio.total_cost_basis),
        total_gain_loss=round_money(portfolio.total_gain_loss),
        total_gain_loss_percent=round_percent(portfolio.total_gain_loss_percent),
        total_holdings=portfolio.total_holdings,
    )


def _map_allocation(item: AllocationItem) -> AllocationItemResponse:
    """Map internal AllocationItem to Pydantic schema."""
    return AllocationItemResponse(
        symbol=item.symbol,
        value=round_money(item.value),
        percentage=round_percent(item.percentage),
        color=item.color,
    )


def _map_result(result: ValuationResult) -> ValuationResponse:
    return ValuationResponse(
        portfolio=_map_portfolio(result.portfolio),
        accounts=[_map_account(a) for a in result.accounts],
        allocation=[_map_allocation(i) for i in result.allocation],
        rates=result.rates.as_dict() if result.rates is not None else None,
        rates_fetched_at=result.rates.fetched_at if result.rates is not None else None,
        has_complete_data=result.has_complete_data,
        warnings=result.warnings,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "",
    response_model=ValuationResponse,
    summary="Value accounts",
    response_description="Per-holding, per-account and portfolio valuation",
)
@limiter.limit(RATE_LIMIT_VALUATION)
def valuate_accounts(
        request: Request,  # Required for rate limiting
        payload: ValuationRequest,
        service: ValuationService = Depends(get_valuation_service),
) -> ValuationResponse:
    """
    Value every account with the latest quotes and exchange rates.

    Returns:
    - **portfolio**: Totals summed across accounts
    - **accounts**: Holdings and cash valued in each account's currency
    - **allocation**: Share of holdings value per symbol

    **Note:** A missing price values the holding at 0 and a missing FX rate
    leaves amounts unconverted. Either sets `has_complete_data` to `false`
    and adds an entry to `warnings`; the request itself still succeeds.
    """
    accounts = [_to_account(account) for account in payload.accounts]
    result = service.valuate(accounts)
    return _map_result(result)
