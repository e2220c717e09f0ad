"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any app import so settings never pick
up a developer's .env file or a real Redis/Supabase.
"""

import os
from typing import Callable
from unittest.mock import Mock

import pytest

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("RATE_LIMIT_STORAGE", "memory")
os.environ.setdefault("RATE_LIMIT_MAX_REQUESTS", "100")
os.environ.setdefault("RATE_LIMIT_WINDOW_MS", "60000")
os.environ.setdefault("AUTH_PROVIDER", "none")

from fastapi import FastAPI  # noqa: E402

from app.adapters.auth.base import AbstractCredentialVerifier  # noqa: E402
from app.adapters.rate_limit.in_memory import InMemoryCounterStore  # noqa: E402
from app.core.app_factory import create_app  # noqa: E402
from app.core.config import Settings  # noqa: E402
from app.services.rate_limiter import RateLimiter  # noqa: E402
from tests.helpers import StaticVerifier  # noqa: E402


@pytest.fixture
def clock() -> Mock:
    """Controllable time source, starting at the beginning of a minute."""
    return Mock(return_value=1_000_020.0)


@pytest.fixture
def store(clock: Mock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)


@pytest.fixture
def verifier() -> StaticVerifier:
    return StaticVerifier({"good-token": "user-123"})


@pytest.fixture
def make_app(
    store: InMemoryCounterStore, clock: Mock, verifier: StaticVerifier
) -> Callable[..., FastAPI]:
    """Build an app around an in-memory limiter with a controllable clock."""

    def _make_app(
        max_requests: int = 100,
        window_ms: int = 60_000,
        limiter: RateLimiter | None = None,
        app_verifier: AbstractCredentialVerifier | None = None,
        **settings_overrides,
    ) -> FastAPI:
        limiter = limiter or RateLimiter(
            store, max_requests=max_requests, window_ms=window_ms, clock=clock
        )
        app_settings = Settings(**settings_overrides)
        return create_app(app_settings, limiter=limiter, verifier=app_verifier or verifier)

    return _make_app
