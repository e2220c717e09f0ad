"""JSON request body reading for routes that sanitize their own payloads."""
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request

from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


async def read_json_object(request: Request) -> dict[str, Any]:
    """Decode the request body as a JSON object.

    Args:
        request: Incoming request.

    Returns:
        The decoded JSON object.

    Raises:
        ValidationAppError: If the body is not valid JSON or not an object.
    """
    body = await request.body()
    try:
        payload = json.loads(body) if body else None
    except ValueError as exc:
        # JSONDecodeError, UnicodeDecodeError and oversized integer literals
        logger.info(
            "request_body.invalid_json",
            extra={"path": request.url.path, "size": len(body)},
        )
        raise ValidationAppError(message="Request body must be valid JSON") from exc

    if not isinstance(payload, dict):
        raise ValidationAppError(message="Request body must be a JSON object")

    return payload
