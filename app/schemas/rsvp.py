"""Pydantic schemas for guest RSVP submissions."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class RSVPResponse(BaseModel):
    """Accepted RSVP with every field sanitized."""

    success: bool = Field(True, description="Always true for accepted submissions.")
    data: Dict[str, Any] = Field(
        ...,
        description=(
            "Sanitized payload: text escaped, email trimmed, website reduced to a "
            "safe http(s) URL, message cleaned to allow-listed HTML."
        ),
    )
