"""Integration tests for the rate limit middleware through the HTTP layer."""

from unittest.mock import AsyncMock, Mock

import httpx
from fastapi.testclient import TestClient

from app.adapters.auth.supabase_client import SupabaseCredentialVerifier
from app.adapters.rate_limit.base import AbstractCounterStore
from app.core.config import RateLimitSettings
from app.core.errors import CounterStoreError
from app.core.rate_limit import is_protected_path
from app.services.rate_limiter import RateLimiter
from tests.helpers import UnavailableVerifier


def test_hundred_calls_pass_and_the_next_is_rejected(make_app) -> None:
    client = TestClient(make_app(max_requests=100, window_ms=60_000))

    for i in range(100):
        response = client.get("/api/protected")
        assert response.status_code == 200, f"call {i + 1} was rejected"
        assert response.headers["X-RateLimit-Remaining"] == str(99 - i)

    response = client.get("/api/protected")

    assert response.status_code == 429
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert response.headers["X-RateLimit-Limit"] == "100"
    assert response.json() == {
        "error": "Too many requests",
        "message": "Rate limit exceeded. Please try again later.",
    }


def test_headers_on_allowed_response(make_app) -> None:
    client = TestClient(make_app(max_requests=3))

    response = client.get("/api/protected")

    assert response.status_code == 200
    assert response.json() == {"message": "This is a rate-limited endpoint"}
    assert response.headers["X-RateLimit-Limit"] == "3"
    assert response.headers["X-RateLimit-Remaining"] == "2"
    assert response.headers["X-RateLimit-Reset"] == "1000080"


def test_blocked_response_has_retry_after(make_app, clock: Mock) -> None:
    client = TestClient(make_app(max_requests=1))

    client.get("/api/protected")
    clock.return_value = 1_000_050.0
    response = client.get("/api/protected")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "30"


def test_new_window_allows_again(make_app, clock: Mock) -> None:
    client = TestClient(make_app(max_requests=1))

    assert client.get("/api/protected").status_code == 200
    assert client.get("/api/protected").status_code == 429

    clock.return_value = 1_000_080.0
    response = client.get("/api/protected")

    assert response.status_code == 200
    assert response.headers["X-RateLimit-Remaining"] == "0"


def test_authenticated_user_has_own_budget(make_app) -> None:
    client = TestClient(make_app(max_requests=1))

    assert client.get("/api/protected").status_code == 200
    assert client.get("/api/protected").status_code == 429

    authed = client.get("/api/protected", headers={"Authorization": "Bearer good-token"})
    assert authed.status_code == 200


def test_forwarded_addresses_are_counted_separately(make_app) -> None:
    client = TestClient(make_app(max_requests=1))

    assert client.get("/api/protected", headers={"X-Forwarded-For": "203.0.113.1"}).status_code == 200
    assert client.get("/api/protected", headers={"X-Forwarded-For": "203.0.113.1"}).status_code == 429
    assert client.get("/api/protected", headers={"X-Forwarded-For": "203.0.113.2"}).status_code == 200


def test_paths_outside_prefix_are_not_limited(make_app) -> None:
    client = TestClient(make_app(max_requests=1))

    for _ in range(3):
        response = client.get("/health")
        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers


def test_unknown_api_route_is_still_counted(make_app) -> None:
    client = TestClient(make_app(max_requests=5))

    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.headers["X-RateLimit-Remaining"] == "4"


def test_store_outage_fails_open(make_app) -> None:
    store = Mock(spec=AbstractCounterStore)
    store.increment = AsyncMock(side_effect=CounterStoreError("redis down"))
    store.set_expiry = AsyncMock()
    limiter = RateLimiter(store, max_requests=1, window_ms=60_000, clock=Mock(return_value=0.0))
    client = TestClient(make_app(limiter=limiter))

    for _ in range(3):
        assert client.get("/api/protected").status_code == 200


def test_verifier_outage_falls_back_to_address(make_app) -> None:
    client = TestClient(make_app(max_requests=1, app_verifier=UnavailableVerifier()))

    first = client.get("/api/protected", headers={"Authorization": "Bearer any"})
    second = client.get("/api/protected", headers={"Authorization": "Bearer any"})

    assert first.status_code == 200
    assert second.status_code == 429


def test_unencodable_token_is_treated_as_no_credential(make_app) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"id": "user-1"})

    verifier = SupabaseCredentialVerifier(
        supabase_url="https://project.supabase.co",
        anon_key="anon-key",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    client = TestClient(make_app(max_requests=1, app_verifier=verifier))

    first = client.get("/api/protected", headers={"Authorization": b"Bearer tok\xe9n"})
    second = client.get("/api/protected")

    assert first.status_code == 200
    assert second.status_code == 429
    assert calls == []


def test_headers_can_be_disabled(make_app) -> None:
    client = TestClient(
        make_app(max_requests=1, rate_limit=RateLimitSettings(include_headers=False))
    )

    assert "X-RateLimit-Limit" not in client.get("/api/protected").headers
    blocked = client.get("/api/protected")
    assert blocked.status_code == 429
    assert "X-RateLimit-Limit" not in blocked.headers
    assert "Retry-After" in blocked.headers


def test_rate_limiting_can_be_disabled(make_app) -> None:
    client = TestClient(make_app(max_requests=1, rate_limit=RateLimitSettings(enabled=False)))

    for _ in range(3):
        response = client.get("/api/protected")
        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers


def test_is_protected_path() -> None:
    assert is_protected_path("/api", "/api")
    assert is_protected_path("/api/rsvp", "/api/")
    assert not is_protected_path("/apiary", "/api")
    assert not is_protected_path("/health", "/api")
    assert is_protected_path("/anything", "")
