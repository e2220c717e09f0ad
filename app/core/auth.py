"""Bearer authentication for routes that need a signed-in user.

The rate limiter only uses credentials to pick an identity and tolerates
verification failures. Routes that act on behalf of a user depend on
``require_user`` instead, which rejects the call with ``AUTH_ERROR``.

Usage:
    @router.get("/me")
    async def me(user_id: Annotated[str, Depends(require_user)]):
        ...
"""

from __future__ import annotations

import logging

from fastapi import Request

from app.adapters.auth.base import AbstractCredentialVerifier
from app.core.errors import AuthenticationAppError, CredentialVerificationError
from app.core.identity import extract_bearer_token
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def get_credential_verifier(request: Request) -> AbstractCredentialVerifier:
    """Return the verifier the application factory attached to ``app.state``."""

    return request.app.state.credential_verifier


async def require_user(request: Request) -> str:
    """FastAPI dependency returning the verified user id.

    Args:
        request: Incoming request.

    Returns:
        str: User id from the verified bearer token.

    Raises:
        AuthenticationAppError: 401 if the token is missing, invalid or
            cannot be verified.
    """

    token = extract_bearer_token(request)
    if token is None:
        logger.info("auth.missing_token", extra={"path": request.url.path})
        raise AuthenticationAppError(message="Missing bearer token")

    verifier = get_credential_verifier(request)
    try:
        user_id = await verifier.verify(token)
    except CredentialVerificationError as exc:
        logger.warning(
            "auth.verification_unavailable",
            extra={"token_hash": hash_identifier(token), "error_msg": str(exc)},
        )
        raise AuthenticationAppError(message="Unable to verify credentials") from exc

    if not user_id:
        logger.info("auth.invalid_token", extra={"token_hash": hash_identifier(token)})
        raise AuthenticationAppError(message="Invalid or expired token")

    return user_id
