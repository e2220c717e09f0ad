"""Caller identity resolution for rate limiting.

An identity is the verified user id when the request carries a valid bearer
credential, otherwise the best-effort network address of the caller.
Verification failures never fail the request: they are logged and the caller
is identified by address instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from starlette.requests import HTTPConnection

from app.adapters.auth.base import AbstractCredentialVerifier
from app.core.errors import CredentialVerificationError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

UNKNOWN_ADDRESS = "unknown"

IdentityKind = Literal["user", "ip"]


@dataclass(frozen=True)
class Identity:
    """Who a request is counted against."""

    kind: IdentityKind
    value: str

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.value}"


def extract_bearer_token(request: HTTPConnection) -> str | None:
    """Return the token of an ``Authorization: Bearer <token>`` header, if any."""

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def resolve_client_address(request: HTTPConnection) -> str:
    """Best-effort source address of the caller.

    Order: first entry of ``X-Forwarded-For``, then ``X-Real-IP``, then the
    connection peer, then the literal ``"unknown"``.
    """

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_ADDRESS


async def verify_bearer(
    request: HTTPConnection,
    verifier: AbstractCredentialVerifier,
) -> str | None:
    """Verify the request's bearer token, treating provider errors as no token."""

    token = extract_bearer_token(request)
    if token is None:
        return None

    try:
        return await verifier.verify(token)
    except CredentialVerificationError as exc:
        logger.warning(
            "identity.verification_failed",
            extra={
                "token_hash": hash_identifier(token),
                "error_msg": str(exc),
                "fallback": "address",
            },
        )
        return None


async def resolve_identity(
    request: HTTPConnection,
    verifier: AbstractCredentialVerifier,
) -> Identity:
    """Resolve who ``request`` should be rate limited as.

    Args:
        request: Incoming request (or websocket connection).
        verifier: Credential verifier for bearer tokens.

    Returns:
        Identity: ``user`` identity when a credential verifies, else ``ip``.
    """

    user_id = await verify_bearer(request, verifier)
    if user_id:
        return Identity(kind="user", value=user_id)

    return Identity(kind="ip", value=resolve_client_address(request))
