"""Supabase Auth credential verifier."""

from __future__ import annotations

import logging

import httpx

from app.adapters.auth.base import AbstractCredentialVerifier
from app.core.errors import CredentialVerificationError

logger = logging.getLogger(__name__)


class SupabaseCredentialVerifier(AbstractCredentialVerifier):
    """Verify access tokens by asking Supabase Auth who they belong to.

    Calls ``GET {supabase_url}/auth/v1/user`` with the token as bearer and
    the project's anon key as ``apikey``. Revoked sessions are rejected here
    even when the token signature is still valid.
    """

    def __init__(
        self,
        supabase_url: str,
        anon_key: str,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the verifier.

        Args:
            supabase_url: Base URL of the Supabase project.
            anon_key: Public anon key of the project.
            timeout_seconds: Timeout for the verification call.
            client: Optional preconfigured HTTP client (tests, pooling).
        """
        self.user_endpoint = f"{supabase_url.rstrip('/')}/auth/v1/user"
        self.anon_key = anon_key
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def verify(self, token: str) -> str | None:
        """Return the Supabase user id for ``token``.

        Args:
            token: Supabase access token.

        Returns:
            str | None: User id, or None when Supabase rejects the token.

        Raises:
            CredentialVerificationError: On transport errors, 5xx responses
                or an unreadable body.
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "apikey": self.anon_key,
        }
        try:
            response = await self.client.get(self.user_endpoint, headers=headers)
        except UnicodeEncodeError:
            # Not representable in an HTTP header, so never a token Supabase issued
            logger.debug("auth.token_rejected", extra={"provider": "supabase", "reason": "encoding"})
            return None
        except httpx.HTTPError as exc:
            raise CredentialVerificationError(
                f"Supabase Auth request failed: {type(exc).__name__}"
            ) from exc

        if response.status_code in (400, 401, 403, 404):
            logger.debug(
                "auth.token_rejected",
                extra={"provider": "supabase", "status_code": response.status_code},
            )
            return None

        if response.status_code != 200:
            raise CredentialVerificationError(
                f"Supabase Auth returned HTTP {response.status_code}"
            )

        try:
            user = response.json()
        except ValueError as exc:
            raise CredentialVerificationError("Supabase Auth returned invalid JSON") from exc

        user_id = user.get("id") if isinstance(user, dict) else None
        return str(user_id) if user_id else None

    async def close(self) -> None:
        await self.client.aclose()
