# backend/portfolio_valuation/config.py
"""
Runtime settings, read from the environment (and a root .env if present).

The quote cache database URL depends on ENVIRONMENT:
- test: in-memory SQLite
- development: ./price_cache.db
- production: anything persistent; in-memory SQLite is refused

Other knobs: cache windows (PRICE_CACHE_TTL_HOURS, FX_CACHE_TTL_SECONDS),
quote fetching (MARKET_DATA_TIMEOUT, MAX_FETCH_WORKERS), logging, proxy
trust for rate limiting, and CORS.

    from portfolio_valuation.config import settings
    settings.price_cache_ttl
"""
from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Single .env at the project root (parent of backend/)
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

IN_MEMORY_SQLITE_URL = "sqlite:///:memory:"


class Settings(BaseSettings):
    """Field names map to upper-case variables (DATABASE_URL, LOG_FORMAT, ...)."""

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Deployment mode; selects the default cache database"
    )

    log_level: str = Field(
        default="INFO",
        description="Root logger level name"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format (text for humans, json for aggregation)"
    )

    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL of the quote cache database"
    )

    app_name: str = "Portfolio Valuation Engine"
    debug: bool = False

    # --- quotes and FX ---
    price_cache_ttl_hours: int = Field(
        default=6,
        ge=0,
        le=168,
        description="Hours a cached quote is served without refetching"
    )
    fx_cache_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="Seconds a fetched exchange rate set is reused"
    )
    market_data_timeout: int = Field(
        default=10,
        ge=1,
        le=120,
        description="Timeout in seconds for a single provider request"
    )
    max_fetch_workers: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Maximum concurrent quote fetches per valuation"
    )

    # --- client identification for rate limits ---
    trust_proxy_headers: bool = Field(
        default=False,
        description="Trust X-Forwarded-For from any client (behind a load balancer only)"
    )
    trusted_proxy_ips: list[str] = Field(
        default=["127.0.0.1"],
        description="Proxy addresses whose forwarded headers are trusted"
    )

    # --- CORS (the dashboard runs on :3000 in development) ---
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the API from a browser"
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def resolve_database_url(self) -> "Settings":
        """Fill in the per-environment default URL, then refuse a volatile cache in production."""
        if not self.database_url:
            default_url = (
                IN_MEMORY_SQLITE_URL
                if self.environment == "test"
                else "sqlite:///./price_cache.db"
            )
            object.__setattr__(self, "database_url", default_url)

        if self.is_production and self.database_url == IN_MEMORY_SQLITE_URL:
            raise ValueError(
                "Production environment cannot use an in-memory quote cache. "
                "Set DATABASE_URL to a persistent database."
            )

        return self

    @property
    def is_sqlite(self) -> bool:
        return bool(self.database_url) and self.database_url.lower().startswith("sqlite://")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def price_cache_ttl(self) -> timedelta:
        return timedelta(hours=self.price_cache_ttl_hours)


settings = Settings()
