"""Unit tests for caller identity resolution."""

import asyncio
import logging

import pytest
from starlette.requests import Request

from app.core.identity import (
    Identity,
    extract_bearer_token,
    resolve_client_address,
    resolve_identity,
)
from tests.helpers import StaticVerifier, UnavailableVerifier


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("10.0.0.1", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/protected",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestExtractBearerToken:
    def test_reads_bearer_token(self) -> None:
        assert extract_bearer_token(_request({"Authorization": "Bearer abc.def"})) == "abc.def"

    def test_scheme_is_case_insensitive(self) -> None:
        assert extract_bearer_token(_request({"Authorization": "bearer abc"})) == "abc"

    @pytest.mark.parametrize("header", ["", "Basic dXNlcjpwYXNz", "Bearer", "Bearer   "])
    def test_missing_or_other_scheme(self, header: str) -> None:
        assert extract_bearer_token(_request({"Authorization": header})) is None


class TestResolveClientAddress:
    def test_prefers_first_forwarded_for_entry(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.2", "X-Real-IP": "198.51.100.1"})
        assert resolve_client_address(request) == "203.0.113.7"

    def test_falls_back_to_real_ip(self) -> None:
        assert resolve_client_address(_request({"X-Real-IP": "198.51.100.1"})) == "198.51.100.1"

    def test_falls_back_to_connection_address(self) -> None:
        assert resolve_client_address(_request()) == "10.0.0.1"

    def test_unknown_without_any_address(self) -> None:
        assert resolve_client_address(_request(client=None)) == "unknown"


class TestResolveIdentity:
    def test_verified_token_yields_user_identity(self) -> None:
        verifier = StaticVerifier({"good-token": "user-123"})
        request = _request({"Authorization": "Bearer good-token"})

        identity = asyncio.run(resolve_identity(request, verifier))

        assert identity == Identity(kind="user", value="user-123")
        assert identity.key == "user:user-123"

    def test_invalid_token_falls_back_to_address(self) -> None:
        verifier = StaticVerifier({"good-token": "user-123"})
        request = _request({"Authorization": "Bearer forged"})

        identity = asyncio.run(resolve_identity(request, verifier))

        assert identity.key == "ip:10.0.0.1"

    def test_no_token_skips_verification(self) -> None:
        verifier = StaticVerifier()

        identity = asyncio.run(resolve_identity(_request(), verifier))

        assert identity.kind == "ip"
        assert verifier.calls == []

    def test_verification_error_is_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        request = _request({"Authorization": "Bearer some-token", "X-Real-IP": "198.51.100.1"})

        with caplog.at_level(logging.WARNING, logger="app.core.identity"):
            identity = asyncio.run(resolve_identity(request, UnavailableVerifier()))

        assert identity.key == "ip:198.51.100.1"
        assert any(r.getMessage() == "identity.verification_failed" for r in caplog.records)
        assert "some-token" not in caplog.text
