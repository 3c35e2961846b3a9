# backend/portfolio_valuation/schemas/errors.py
"""
Error bodies returned by the exception handlers in main.py.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """
    Body of every non-422 error.

    `error` is the exception class name ("PriceUnavailableError"), stable
    enough for clients to switch on.
    """

    error: str = Field(..., description="Error class name")
    message: str = Field(..., description="Message safe to show to users")
    details: dict | None = Field(default=None, description="Structured context, e.g. the symbol")


class ValidationErrorDetail(BaseModel):
    """Body of 422 responses: one entry per rejected field."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(..., description="Entries with field, message and type")
