"""Auth adapter layer - abstracts over credential verification strategies."""

from app.adapters.auth.base import AbstractCredentialVerifier, NullCredentialVerifier
from app.adapters.auth.factory import create_credential_verifier
from app.adapters.auth.jwt_verifier import JwtCredentialVerifier
from app.adapters.auth.supabase_client import SupabaseCredentialVerifier

__all__ = [
    "AbstractCredentialVerifier",
    "JwtCredentialVerifier",
    "NullCredentialVerifier",
    "SupabaseCredentialVerifier",
    "create_credential_verifier",
]
