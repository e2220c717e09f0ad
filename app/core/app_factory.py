from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
the protection components (counter store, rate limiter, credential
verifier). The components are built here and passed explicitly to the
middleware; tests can hand in their own instances.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.adapters.auth.base import AbstractCredentialVerifier
from app.adapters.auth.factory import create_credential_verifier
from app.adapters.rate_limit.factory import create_counter_store
from app.api.routes import health_router, protected_router, rsvp_router
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware, security_headers_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_rate_limit_middleware
from app.services.rate_limiter import RateLimiter


def create_app(
    app_settings: Settings | None = None,
    *,
    limiter: RateLimiter | None = None,
    verifier: AbstractCredentialVerifier | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the environment-loaded ones.
        limiter: Rate limiter to enforce; built from settings when omitted.
        verifier: Credential verifier; built from settings when omitted.

    Returns:
        Configured app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    verifier = verifier or create_credential_verifier(cfg.auth)
    limiter = limiter or RateLimiter(
        create_counter_store(cfg.rate_limit),
        max_requests=cfg.rate_limit.max_requests,
        window_ms=cfg.rate_limit.window_ms,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await limiter.store.close()
        await verifier.close()

    app = FastAPI(
        title="Baby Shower Event API",
        description=(
            "API for the baby shower event site (invitations, gift registry, guest "
            "list, gallery). Every route under the API prefix is rate limited per "
            "user or address; payloads are sanitized and validated before they "
            "reach application logic."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.rate_limiter = limiter
    app.state.credential_verifier = verifier

    # Middleware: the last one registered runs first
    if cfg.rate_limit.enabled:
        app.middleware("http")(
            build_rate_limit_middleware(
                limiter,
                verifier,
                path_prefix=cfg.app.api_prefix,
                include_headers=cfg.rate_limit.include_headers,
            )
        )
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(protected_router, prefix=cfg.app.api_prefix)
    app.include_router(rsvp_router, prefix=cfg.app.api_prefix)
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, 429 responses)
    apply_openapi_customizations(app, cfg.app.api_prefix)

    return app
