# backend/portfolio_valuation/main.py
"""
Portfolio Valuation API.

Wires together:
- Logging (configured before anything else logs)
- The quote cache schema, created in the lifespan hook
- CORS, rate limiting and correlation ID middleware
- Domain exception -> HTTP status mapping
- The valuation, exchange rate and stock price routers
- Health, liveness and readiness probes
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_valuation.config import settings
from portfolio_valuation.database import get_db, init_db, check_database_health
from portfolio_valuation.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from portfolio_valuation.routers import (
    valuation_router,
    exchange_rates_router,
    stocks_router,
)
from portfolio_valuation.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_valuation.services.exceptions import (
    ServiceError,
    ValidationError,
    MarketDataError,
    PriceUnavailableError,
    FXProviderError,
)
from portfolio_valuation.utils import setup_logging

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{settings.app_name} started (environment={settings.environment})")
    yield
    logger.info(f"{settings.app_name} shutting down")


app = FastAPI(
    title=settings.app_name,
    description="Multi-currency portfolio valuation with live quotes and FX rates",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# slowapi looks the limiter up on app.state
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Added last so it wraps everything and every request log line has an ID
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# EXCEPTION -> HTTP MAPPING
# =============================================================================
# Provider errors (TickerNotFound, RateLimit, ProviderUnavailable) never reach
# this layer: the quote and FX sources fold them into PriceUnavailableError
# and FXProviderError. The MarketDataError and ServiceError handlers catch
# anything else.
# =============================================================================

def _error_response(
        status_code: int,
        error: str,
        message: str,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorDetail(error=error, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(PriceUnavailableError)
async def price_unavailable_handler(request: Request, exc: PriceUnavailableError) -> JSONResponse:
    """No live or cached price for the symbol: 404."""
    logger.warning(f"No price for {exc.symbol}: {exc.reason}")
    return _error_response(404, "PriceUnavailableError", str(exc), {"symbol": exc.symbol})


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    logger.error(f"Unhandled market data failure: {exc}")
    return _error_response(500, "MarketDataError", str(exc))


@app.exception_handler(FXProviderError)
async def fx_provider_error_handler(request: Request, exc: FXProviderError) -> JSONResponse:
    """Exchange rates could not be fetched: 503 with a fixed message."""
    logger.error(f"Exchange rate fetch failed: {exc}")
    return _error_response(
        503, "FXProviderError", "Failed to fetch exchange rates", {"provider": exc.provider}
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Service-level input problems (e.g. blank symbol): 400."""
    logger.warning(f"Rejected input: {exc}")
    details = {"field": exc.field} if exc.field else None
    return _error_response(400, "ValidationError", str(exc), details)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.error(f"Unhandled service error: {exc}")
    return _error_response(500, "ServiceError", str(exc))


# Error names for framework-raised HTTP errors (unknown route, wrong method)
HTTP_ERROR_NAMES = {
    400: "BadRequestError",
    404: "NotFoundError",
    405: "MethodNotAllowedError",
    422: "ValidationError",
    429: "RateLimitError",
    500: "InternalServerError",
    503: "ServiceUnavailableError",
}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Reshape {"detail": ...} into ErrorDetail."""
    return _error_response(
        exc.status_code,
        HTTP_ERROR_NAMES.get(exc.status_code, "HTTPError"),
        str(exc.detail) if exc.detail else "An error occurred",
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
        request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Pydantic body/path errors: 422 with one entry per failing field."""
    body = ValidationErrorDetail(
        details=[
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ],
    )
    return JSONResponse(status_code=422, content=body.model_dump())


# =============================================================================
# ROUTERS
# =============================================================================

app.include_router(valuation_router)
app.include_router(exchange_rates_router)
app.include_router(stocks_router)


# =============================================================================
# HEALTH
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Report quote cache connectivity; 503 when the database does not answer.

    Yahoo Finance is deliberately not probed here: valuations keep working
    (with warnings) while it is down.
    """
    database = check_database_health(db)
    payload = {
        "status": database["status"],
        "environment": settings.environment,
        "checks": {"database": database},
    }
    if database["status"] != "healthy":
        return JSONResponse(status_code=503, content=payload)
    return payload


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """200 as long as the process serves requests."""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """503 until the quote cache database is reachable."""
    if check_database_health(db)["status"] != "healthy":
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
    return {"status": "ready"}
