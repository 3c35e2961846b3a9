# backend/portfolio_valuation/utils/context.py
"""
Correlation ID of the request being served.

A ContextVar follows the request across await points, and into worker
threads when they are started through contextvars.copy_context().run.
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)
