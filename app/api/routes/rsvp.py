import logging
from typing import Any

from fastapi import APIRouter, Depends

from app.core.request_body import read_json_object
from app.schemas.errors import ErrorEnvelope
from app.schemas.rsvp import RSVPResponse
from app.utils.sanitize import sanitize_payload
from app.utils.validators import (
    ValidationRule,
    email_rules,
    in_range,
    is_numeric,
    is_required,
    is_valid_phone,
    is_valid_url,
    max_length,
    name_rules,
    optional,
    validate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Guests"])

MAX_GUESTS = 10

RSVP_FIELDS = ("name", "email", "phone", "guests", "website", "message")

RSVP_RULES: list[ValidationRule] = [
    *name_rules("name"),
    *email_rules("email"),
    ValidationRule("phone", optional(is_valid_phone), "Please provide a valid phone number"),
    ValidationRule("guests", is_required, "Number of guests is required"),
    ValidationRule("guests", is_numeric, "Number of guests must be a whole number"),
    ValidationRule(
        "guests",
        in_range(1, MAX_GUESTS),
        f"Number of guests must be between 1 and {MAX_GUESTS}",
    ),
    ValidationRule("website", optional(is_valid_url), "Website must be a valid http(s) URL"),
    ValidationRule("message", optional(max_length(500)), "Message must be at most 500 characters"),
]


@router.post(
    "/rsvp",
    response_model=RSVPResponse,
    responses={400: {"model": ErrorEnvelope}},
)
async def submit_rsvp(
    payload: dict[str, Any] = Depends(read_json_object),
) -> RSVPResponse:
    """Validate and sanitize a guest RSVP.

    Every rule is checked and all failing fields are reported together. The
    accepted payload is sanitized before it is handed on.

    Args:
        payload: Decoded JSON body.

    Returns:
        RSVPResponse: The sanitized RSVP fields.

    Raises:
        ValidationAppError: 400 with per-field messages.
    """
    result = validate(RSVP_RULES, payload)
    if not result.is_valid:
        logger.info(
            "rsvp.rejected",
            extra={"invalid_fields": sorted(result.errors)},
        )
    result.raise_for_errors()

    submitted = {key: payload[key] for key in RSVP_FIELDS if key in payload}
    return RSVPResponse(data=sanitize_payload(submitted))
