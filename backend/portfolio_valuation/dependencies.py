# backend/portfolio_valuation/dependencies.py
"""
Process-wide service instances for FastAPI's Depends().

Built lazily on first request and then reused, which the FX source needs:
its rate cache lives on the instance. Tests swap any of these through
app.dependency_overrides.

    @router.post("")
    def valuate_accounts(service: ValuationService = Depends(get_valuation_service)):
        ...
"""

import logging
from functools import lru_cache

from portfolio_valuation.config import settings
from portfolio_valuation.database import SessionLocal
from portfolio_valuation.services.fx_rate_service import YahooExchangeRateSource
from portfolio_valuation.services.market_data.price_service import CachedPriceSource
from portfolio_valuation.services.market_data.yahoo import YahooFinanceProvider
from portfolio_valuation.services.valuation.service import ValuationService

logger = logging.getLogger(__name__)


# provider -> (price source, rate source) -> valuation service


@lru_cache(maxsize=1)
def get_market_data_provider() -> YahooFinanceProvider:
    """One Yahoo client behind both quote and FX lookups."""
    logger.debug("Creating YahooFinanceProvider")
    return YahooFinanceProvider(timeout=settings.market_data_timeout)


@lru_cache(maxsize=1)
def get_price_source() -> CachedPriceSource:
    logger.debug("Creating CachedPriceSource")
    return CachedPriceSource(
        provider=get_market_data_provider(),
        session_factory=SessionLocal,
    )


@lru_cache(maxsize=1)
def get_exchange_rate_source() -> YahooExchangeRateSource:
    logger.debug("Creating YahooExchangeRateSource")
    return YahooExchangeRateSource(provider=get_market_data_provider())


@lru_cache(maxsize=1)
def get_valuation_service() -> ValuationService:
    logger.debug("Creating ValuationService")
    return ValuationService(
        price_source=get_price_source(),
        rate_source=get_exchange_rate_source(),
    )


def clear_service_caches() -> None:
    """Drop every instance so the next request builds fresh ones (FX cache included)."""
    for getter in (
            get_market_data_provider,
            get_price_source,
            get_exchange_rate_source,
            get_valuation_service,
    ):
        getter.cache_clear()
    logger.info("Service instances reset")
