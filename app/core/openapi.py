"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Bearer security scheme (Supabase access token) for authenticated routes
- The 429 response the rate limiter may return on every API operation

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.rate_limit import is_protected_path
from app.schemas.errors import RateLimitBody

_TAGS = [
    {"name": "Guests", "description": "Guest RSVP submission with sanitization and validation."},
    {"name": "Protected", "description": "Rate-limited example and user endpoints."},
    {"name": "Health", "description": "Liveness checks (not rate limited)."},
]

_RATE_LIMITED_RESPONSE = {
    "description": "Rate limit exceeded",
    "content": {"application/json": {"schema": RateLimitBody.model_json_schema()}},
}


def apply_openapi_customizations(app: FastAPI, api_prefix: str) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security.

    - Injects components.securitySchemes for bearer auth
    - Documents the 429 response on operations under ``api_prefix``
    - Marks ``/me`` as requiring bearer auth
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Supabase access token of the signed-in user.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not is_protected_path(path, api_prefix):
                continue
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                method_obj.setdefault("responses", {}).setdefault("429", _RATE_LIMITED_RESPONSE)
                if path.endswith("/me"):
                    method_obj["security"] = [{"BearerAuth": []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
