"""Global exception handlers for consistent error responses.

Every failure leaves the API in the same envelope:

    {"success": false,
     "error": {"message": ..., "type": ..., "details": ..., "request_id": ...}}

Design:
- AppError subclasses → their own status and ErrorType
- Starlette HTTPException (unknown routes, wrong method) → mapped by status
- FastAPI request validation → 400 VALIDATION_ERROR
- PyJWT errors that escape a route → 401 AUTH_ERROR
- Unexpected Exception → generic 500 (stack trace only outside production)
"""

import logging
import traceback
from typing import Any

import jwt
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings_for
from app.core.errors import AppError, ErrorType
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

_TYPE_BY_STATUS: dict[int, ErrorType] = {
    400: ErrorType.VALIDATION_ERROR,
    401: ErrorType.AUTH_ERROR,
    403: ErrorType.FORBIDDEN,
    404: ErrorType.NOT_FOUND,
    405: ErrorType.NOT_FOUND,
    422: ErrorType.VALIDATION_ERROR,
    429: ErrorType.RATE_LIMIT_EXCEEDED,
}


def error_envelope(
    message: str,
    error_type: ErrorType,
    details: dict[str, Any] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build the uniform error body.

    Args:
        message: Human-readable message.
        error_type: Machine-readable error type.
        details: Optional structured context; omitted when empty.
        **extra: Additional fields for the error object (e.g. ``stack``).

    Returns:
        JSON-serializable envelope.
    """
    error: dict[str, Any] = {
        "message": message,
        "type": error_type.value,
        "request_id": get_request_id(),
    }
    if details:
        error["details"] = details
    error.update(extra)
    return {"success": False, "error": error}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with their declared status and type."""
    logger.warning(
        "app_error_handled",
        extra={
            "error_type": exc.error_type.value,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, exc.error_type, exc.details),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors (404, 405, ...) in the error envelope."""
    error_type = _TYPE_BY_STATUS.get(exc.status_code, ErrorType.INTERNAL_SERVER_ERROR)
    if exc.status_code == 404:
        message = f"Cannot {request.method} {request.url.path}"
    else:
        message = str(exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(message, error_type),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map FastAPI's own parameter/body validation to VALIDATION_ERROR (400)."""
    errors: dict[str, list[str]] = {}
    for item in exc.errors():
        location = [str(part) for part in item.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "body"
        errors.setdefault(field, []).append(item.get("msg", "Invalid value"))

    logger.info(
        "request_validation_failed",
        extra={"request_path": request.url.path, "invalid_fields": sorted(errors)},
    )

    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            error_envelope("Validation failed", ErrorType.VALIDATION_ERROR, {"errors": errors})
        ),
    )


async def jwt_error_handler(request: Request, exc: jwt.PyJWTError) -> JSONResponse:
    """Invalid or expired tokens raised outside the verifiers become AUTH_ERROR."""
    logger.info(
        "jwt_error_handled",
        extra={"error_type": type(exc).__name__, "request_path": request.url.path},
    )

    return JSONResponse(
        status_code=401,
        content=error_envelope("Invalid or expired token", ErrorType.AUTH_ERROR),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. The stack trace is added to the response only outside
    production.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with a generic INTERNAL_SERVER_ERROR envelope.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    extra: dict[str, Any] = {}
    if not settings_for(request).is_production:
        extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    return JSONResponse(
        status_code=500,
        content=error_envelope("Internal server error", ErrorType.INTERNAL_SERVER_ERROR, **extra),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Specific handlers are registered before the general fallback.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(jwt.PyJWTError)(jwt_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
