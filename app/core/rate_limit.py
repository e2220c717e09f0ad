"""Rate limiting middleware for the API routes.

This module wires identity resolution and the rate limiter into the HTTP
layer. The two steps are composed explicitly inside the middleware:

    identity = await resolve_identity(request, verifier)
    decision = await limiter.check_and_consume(identity.key)

Design goals:
- No hidden globals: limiter and verifier are constructed by the app factory
  and passed in, so tests can inject their own.
- Swap-friendly: the counter store behind the limiter is chosen by config.
- Every processed response carries X-RateLimit-* headers; blocked calls get a
  429 with a small JSON body.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from app.adapters.auth.base import AbstractCredentialVerifier
from app.core.identity import resolve_identity
from app.core.logging import hash_identifier
from app.services.rate_limiter import RateDecision, RateLimiter

logger = logging.getLogger(__name__)

RATE_LIMIT_ERROR = "Too many requests"
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."

CallNext = Callable[[Request], Awaitable[Response]]


def rate_limit_headers(decision: RateDecision) -> dict[str, str]:
    """Build the X-RateLimit-* headers describing ``decision``."""

    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_at),
    }


def is_protected_path(path: str, prefix: str) -> bool:
    """Whether ``path`` falls under the protected API prefix."""

    prefix = prefix.rstrip("/")
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


def build_rate_limit_middleware(
    limiter: RateLimiter,
    verifier: AbstractCredentialVerifier,
    *,
    path_prefix: str = "/api",
    include_headers: bool = True,
) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Create the HTTP middleware enforcing ``limiter`` on ``path_prefix``.

    Args:
        limiter: Configured rate limiter.
        verifier: Credential verifier used to resolve user identities.
        path_prefix: Only requests under this prefix are counted.
        include_headers: Attach X-RateLimit-* headers to responses.

    Returns:
        Middleware callable for ``app.middleware("http")``.
    """

    async def rate_limit_middleware(request: Request, call_next: CallNext) -> Response:
        if not is_protected_path(request.url.path, path_prefix):
            return await call_next(request)

        identity = await resolve_identity(request, verifier)
        decision = await limiter.check_and_consume(identity.key)
        headers = rate_limit_headers(decision) if include_headers else {}

        if not decision.allowed:
            retry_after = decision.retry_after_seconds or 0
            logger.warning(
                "rate_limit.exceeded",
                extra={
                    "key_type": identity.kind,
                    "key_hash": hash_identifier(identity.value),
                    "limit": decision.limit,
                    "remaining": decision.remaining,
                    "window_ms": limiter.window_ms,
                    "retry_after_s": retry_after,
                    "path": request.url.path,
                },
            )
            headers["Retry-After"] = str(retry_after)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": RATE_LIMIT_ERROR, "message": RATE_LIMIT_MESSAGE},
                headers=headers,
            )

        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_type": identity.kind,
                "key_hash": hash_identifier(identity.value),
                "limit": decision.limit,
                "remaining": decision.remaining,
                "fail_open": decision.fail_open,
            },
        )

        response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response

    return rate_limit_middleware
