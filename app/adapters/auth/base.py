from abc import ABC, abstractmethod


class AbstractCredentialVerifier(ABC):
	"""Interface for checking bearer credentials against the auth provider."""

	@abstractmethod
	async def verify(self, token: str) -> str | None:
		"""Verify a bearer token and return its subject.

		Args:
			token: Raw bearer token (without the ``Bearer`` prefix).

		Returns:
			str | None: Verified user id, or None when the token is not valid.

		Raises:
			CredentialVerificationError: If the provider could not be reached
				or answered with an unexpected failure.
		"""
		...

	async def close(self) -> None:
		"""Release network resources (no-op by default)."""


class NullCredentialVerifier(AbstractCredentialVerifier):
	"""Verifier used when auth is disabled: every token is treated as absent."""

	async def verify(self, token: str) -> str | None:
		return None
