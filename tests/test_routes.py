"""Tests for the API routes: RSVP, authenticated user and health."""

import pytest
from fastapi.testclient import TestClient

from tests.helpers import UnavailableVerifier


@pytest.fixture
def client(make_app) -> TestClient:
    return TestClient(make_app())


@pytest.fixture
def valid_rsvp() -> dict:
    return {
        "name": "Ana María",
        "email": "ana@example.com",
        "phone": "+34 612345678",
        "guests": 2,
        "website": "https://ana.example.com",
        "message": "<b>¡Felicidades!</b>",
    }


class TestRSVP:
    def test_accepts_and_sanitizes_valid_rsvp(self, client: TestClient, valid_rsvp: dict) -> None:
        response = client.post("/api/rsvp", json=valid_rsvp)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == {
            "name": "Ana María",
            "email": "ana@example.com",
            "phone": "+34 612345678",
            "guests": 2,
            "website": "https://ana.example.com/",
            "message": "&lt;b&gt;¡Felicidades!&lt;&#x2F;b&gt;",
        }

    def test_unknown_fields_are_dropped(self, client: TestClient, valid_rsvp: dict) -> None:
        response = client.post("/api/rsvp", json={**valid_rsvp, "is_admin": True})

        assert response.status_code == 200
        assert "is_admin" not in response.json()["data"]

    def test_reports_every_invalid_field(self, client: TestClient) -> None:
        response = client.post(
            "/api/rsvp",
            json={"name": "A", "email": "not-an-email", "guests": 0, "website": "ftp://x.org"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["type"] == "VALIDATION_ERROR"
        assert body["error"]["message"] == "Validation failed"
        errors = body["error"]["details"]["errors"]
        assert set(errors) == {"name", "email", "guests", "website"}
        assert errors["guests"] == ["Number of guests must be between 1 and 10"]
        assert errors["email"] == ["Please provide a valid email address"]

    def test_missing_guest_count(self, client: TestClient, valid_rsvp: dict) -> None:
        del valid_rsvp["guests"]

        response = client.post("/api/rsvp", json=valid_rsvp)

        assert response.status_code == 400
        assert response.json()["error"]["details"]["errors"]["guests"][0] == "Number of guests is required"

    def test_invalid_json_body(self, client: TestClient) -> None:
        response = client.post(
            "/api/rsvp",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == {
            "message": "Request body must be valid JSON",
            "type": "VALIDATION_ERROR",
            "request_id": response.headers["X-Request-ID"],
        }

    def test_non_object_body(self, client: TestClient) -> None:
        response = client.post("/api/rsvp", json=["a", "b"])

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Request body must be a JSON object"

    def test_guest_count_beyond_float_range(self, client: TestClient, valid_rsvp: dict) -> None:
        response = client.post("/api/rsvp", json={**valid_rsvp, "guests": 10**400})

        assert response.status_code == 400
        assert response.json()["error"]["details"]["errors"] == {
            "guests": ["Number of guests must be between 1 and 10"]
        }

    def test_integer_literal_too_long_to_parse(self, client: TestClient) -> None:
        response = client.post(
            "/api/rsvp",
            content=b'{"guests": ' + b"1" * 5000 + b"}",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Request body must be valid JSON"


class TestMe:
    def test_returns_verified_user(self, client: TestClient) -> None:
        response = client.get("/api/me", headers={"Authorization": "Bearer good-token"})

        assert response.status_code == 200
        assert response.json() == {"user_id": "user-123"}

    def test_missing_token_is_auth_error(self, client: TestClient) -> None:
        response = client.get("/api/me")

        assert response.status_code == 401
        assert response.json()["error"]["type"] == "AUTH_ERROR"
        assert response.json()["error"]["message"] == "Missing bearer token"

    def test_invalid_token_is_auth_error(self, client: TestClient) -> None:
        response = client.get("/api/me", headers={"Authorization": "Bearer forged"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid or expired token"

    def test_provider_outage_is_auth_error(self, make_app) -> None:
        client = TestClient(make_app(app_verifier=UnavailableVerifier()))

        response = client.get("/api/me", headers={"Authorization": "Bearer any"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Unable to verify credentials"


class TestHealthAndFallbacks:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "rate_limit": {"enabled": True, "storage": "memory"},
        }

    def test_unknown_route_uses_error_envelope(self, client: TestClient) -> None:
        response = client.get("/api/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["type"] == "NOT_FOUND"
        assert body["error"]["message"] == "Cannot GET /api/nope"

    def test_security_headers(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-XSS-Protection"] == "1; mode=block"
        assert response.headers["Content-Security-Policy"] == "default-src 'self'"

    def test_openapi_documents_rate_limit_and_bearer(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()

        assert "BearerAuth" in schema["components"]["securitySchemes"]
        assert "429" in schema["paths"]["/api/protected"]["get"]["responses"]
        rate_limited = schema["paths"]["/api/protected"]["get"]["responses"]["429"]
        body_schema = rate_limited["content"]["application/json"]["schema"]
        assert set(body_schema["properties"]) == {"error", "message"}
        assert schema["paths"]["/api/me"]["get"]["security"] == [{"BearerAuth": []}]
        assert "429" not in schema["paths"]["/health"]["get"]["responses"]
