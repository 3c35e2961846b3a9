# backend/portfolio_valuation/models.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class StockPriceHistory(Base):
    """
    Quote cache for the price source.

    Every successful provider fetch appends a row. The newest row per symbol
    is served while it is younger than the cache TTL, and is served
    regardless of age when the provider fails (stale fallback).

    Timestamps are stored in UTC.
    """
    __tablename__ = "stock_price_history"
    __table_args__ = (
        # "Latest price for symbol" is the only lookup pattern
        Index('ix_stock_price_symbol_timestamp', 'symbol', 'timestamp'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    symbol: Mapped[str] = mapped_column(String(20))  # Normalized upper-case ticker
    price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    currency: Mapped[str] = mapped_column(String(10), default="USD")

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )
    provider: Mapped[str] = mapped_column(String(50), default="yahoo")

    @property
    def timestamp_utc(self) -> datetime:
        """Timestamp as an aware UTC datetime (SQLite returns naive values)."""
        if self.timestamp.tzinfo is None:
            return self.timestamp.replace(tzinfo=timezone.utc)
        return self.timestamp.astimezone(timezone.utc)
