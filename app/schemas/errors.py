"""Pydantic schemas documenting error responses."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    message: str = Field(..., description="Human-readable error message.")
    type: str = Field(..., description="Machine-readable error type, e.g. VALIDATION_ERROR.")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Structured context, e.g. {'errors': {field: [messages]}}.",
    )
    request_id: Optional[str] = Field(default=None, description="Correlation id of the request.")


class ErrorEnvelope(BaseModel):
    """Uniform error envelope returned for every failed request."""

    success: bool = False
    error: ErrorBody


class RateLimitBody(BaseModel):
    """Body of a 429 response from the rate limiter."""

    error: str = Field(..., examples=["Too many requests"])
    message: str = Field(..., examples=["Rate limit exceeded. Please try again later."])
