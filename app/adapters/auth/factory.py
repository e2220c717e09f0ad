"""Factory pattern for creating credential verifier instances."""

from app.adapters.auth.base import AbstractCredentialVerifier, NullCredentialVerifier
from app.adapters.auth.jwt_verifier import JwtCredentialVerifier
from app.adapters.auth.supabase_client import SupabaseCredentialVerifier
from app.core.config import AuthSettings
from app.core.errors import ValidationAppError


def create_credential_verifier(auth_settings: AuthSettings) -> AbstractCredentialVerifier:
    """Instantiate the verifier selected by ``AUTH_PROVIDER``.

    Validates provider-specific requirements before building the client.

    Args:
        auth_settings: Auth section of the application settings.

    Returns:
        AbstractCredentialVerifier: Configured verifier instance.

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    provider = auth_settings.provider

    if provider == "supabase":
        if not auth_settings.supabase_url or not auth_settings.supabase_anon_key:
            raise ValidationAppError(
                message="Supabase provider requires AUTH_SUPABASE_URL and AUTH_SUPABASE_ANON_KEY",
            )
        return SupabaseCredentialVerifier(
            supabase_url=auth_settings.supabase_url,
            anon_key=auth_settings.supabase_anon_key,
            timeout_seconds=auth_settings.timeout_seconds,
        )

    if provider == "jwt":
        if not auth_settings.jwt_secret:
            raise ValidationAppError(
                message="JWT provider requires AUTH_JWT_SECRET",
            )
        return JwtCredentialVerifier(
            secret=auth_settings.jwt_secret,
            audience=auth_settings.jwt_audience,
        )

    return NullCredentialVerifier()
