"""Local JWT credential verifier."""

from __future__ import annotations

import logging

import jwt

from app.adapters.auth.base import AbstractCredentialVerifier

logger = logging.getLogger(__name__)


class JwtCredentialVerifier(AbstractCredentialVerifier):
    """Verify HS256 access tokens signed with the project's JWT secret.

    No network round trip is needed, so this verifier never raises
    ``CredentialVerificationError``: a token either verifies or it does not.
    """

    def __init__(
        self,
        secret: str,
        audience: str | None = "authenticated",
        algorithms: list[str] | None = None,
        leeway_seconds: int = 0,
    ) -> None:
        self.secret = secret
        self.audience = audience
        self.algorithms = algorithms or ["HS256"]
        self.leeway_seconds = leeway_seconds

    def decode(self, token: str) -> dict:
        """Decode and validate ``token``. Raises jwt.PyJWTError on failure."""
        options = {"require": ["exp", "sub"]}
        if self.audience is None:
            options["verify_aud"] = False
        return jwt.decode(
            token,
            self.secret,
            algorithms=self.algorithms,
            audience=self.audience,
            leeway=self.leeway_seconds,
            options=options,
        )

    async def verify(self, token: str) -> str | None:
        try:
            payload = self.decode(token)
        except jwt.PyJWTError as exc:
            logger.debug(
                "auth.token_rejected",
                extra={"provider": "jwt", "reason": type(exc).__name__},
            )
            return None

        subject = payload.get("sub")
        return str(subject) if subject else None
