# backend/portfolio_valuation/database.py
"""
Engine and sessions for the quote cache (stock_price_history).

SQLite by default. In-memory SQLite uses StaticPool so every session sees
the same database, and check_same_thread is off because quotes are cached
from worker threads. Other backends get the default pool with pre-ping.
"""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import IN_MEMORY_SQLITE_URL, settings
from .models import Base

logger = logging.getLogger(__name__)


def _create_engine() -> Engine:
    url = settings.database_url
    if not settings.is_sqlite:
        logger.info("Quote cache on a pooled database connection")
        return create_engine(url, pool_pre_ping=True, echo=settings.debug)

    logger.info(f"Quote cache on SQLite ({url})")
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url == IN_MEMORY_SQLITE_URL:
        kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=settings.debug, **kwargs)


engine = _create_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create missing tables; run from the app lifespan."""
    Base.metadata.create_all(bind=engine)
    logger.info("Quote cache schema ready")


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session, closed when the response is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_database_health(db: Session) -> dict:
    """{"status": "healthy"}, or "unhealthy" with the driver error."""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Quote cache unreachable: {e}")
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy"}
