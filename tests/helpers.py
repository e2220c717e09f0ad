"""Test doubles shared by several test modules."""

from app.adapters.auth.base import AbstractCredentialVerifier
from app.core.errors import CredentialVerificationError


class StaticVerifier(AbstractCredentialVerifier):
    """Verifier resolving tokens from a fixed mapping."""

    def __init__(self, users: dict[str, str] | None = None) -> None:
        self.users = users or {}
        self.calls: list[str] = []

    async def verify(self, token: str) -> str | None:
        self.calls.append(token)
        return self.users.get(token)


class UnavailableVerifier(AbstractCredentialVerifier):
    """Verifier whose provider is always down."""

    async def verify(self, token: str) -> str | None:
        raise CredentialVerificationError("auth provider unreachable")
