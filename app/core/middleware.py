"""HTTP middleware for request correlation and browser hardening headers.

Usage:
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import re
import time
import uuid

from fastapi import Request, Response

from app.core.config import settings_for
from app.core.exception_handlers import general_exception_handler
from app.core.logging import clear_request_id, set_request_id

SECURITY_HEADERS: dict[str, str] = {
    "X-XSS-Protection": "1; mode=block",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "default-src 'self'",
}

# Client-supplied ids end up in logs and response headers
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def incoming_request_id(request: Request, header_name: str) -> str:
    """Return the client's correlation id if well-formed, else a fresh UUID4."""

    candidate = request.headers.get(header_name, "").strip()
    if candidate and _REQUEST_ID_PATTERN.match(candidate):
        return candidate
    return str(uuid.uuid4())


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate a request id and report how long the request took.

    The id (``LOG_REQUEST_ID_HEADER``, default ``X-Request-ID``) is kept in a
    context variable while the request is processed, so every log line and
    error envelope produced for it carries the same value. It is echoed back
    together with ``X-Request-Duration-ms``. Unexpected errors are rendered
    here, while the id is still set, so the 500 envelope carries it too.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with correlation headers added.
    """

    header_name = settings_for(request).log.request_id_header
    request_id = incoming_request_id(request, header_name)
    set_request_id(request_id)
    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        response = await general_exception_handler(request, exc)
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault(
        "X-Request-Duration-ms", f"{(time.perf_counter() - started) * 1000:.2f}"
    )
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    """Add XSS/clickjacking protection headers unless a route set its own."""

    response: Response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response
