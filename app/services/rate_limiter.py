"""Fixed-window rate limiter on top of an external counter store.

Each identity gets one counter per window, keyed
``rate_limit:{identity}:{window_start}``. The first increment in a window sets
the key's expiry, so the store discards old windows on its own.

Availability wins over strict enforcement: when the store is unreachable the
limiter allows the call (fail-open) and logs a warning flagged for alerting,
since protection is silently disabled for the duration of the outage.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractCounterStore
from app.core.errors import CounterStoreError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

KEY_PREFIX = "rate_limit"


@dataclass(frozen=True)
class RateDecision:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the call may proceed.
        limit: Max calls per window.
        remaining: Calls left in the current window (0 once exhausted).
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Suggested wait in seconds when blocked.
        fail_open: True when the store failed and the call was let through.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None = None
    fail_open: bool = False


class RateLimiter:
    """Per-identity fixed-window limiter.

    The instance holds configuration only; all counter state lives in the
    store, so one limiter can be shared by concurrent requests.
    """

    def __init__(
        self,
        store: AbstractCounterStore,
        *,
        max_requests: int,
        window_ms: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store providing atomic increment and expiry.
            max_requests: Default maximum calls per window.
            window_ms: Default window length in milliseconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If max_requests or window_ms are invalid.
        """
        _check_limits(max_requests, window_ms)

        self._store = store
        self._max_requests = max_requests
        self._window_ms = window_ms
        self._clock = clock

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def store(self) -> AbstractCounterStore:
        return self._store

    async def check_and_consume(
        self,
        identity: str,
        limit: int | None = None,
        window_ms: int | None = None,
    ) -> RateDecision:
        """Count one call for ``identity`` and decide whether it is allowed.

        The counter is incremented before comparing, so the call that brings
        the count to exactly ``limit`` is allowed and the next one is the
        first rejected. The increment is never retried: a failed round trip
        may already have been applied by the store.

        Args:
            identity: Caller key (e.g. ``user:<id>`` or ``ip:<addr>``).
            limit: Overrides the configured max calls per window.
            window_ms: Overrides the configured window length.

        Returns:
            RateDecision describing the outcome.

        Raises:
            ValueError: If identity is empty or limit/window are invalid.
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")

        limit = self._max_requests if limit is None else limit
        window_ms = self._window_ms if window_ms is None else window_ms
        _check_limits(limit, window_ms)

        now = self._clock()
        window_start_ms = (int(now * 1000) // window_ms) * window_ms
        reset_at = math.ceil((window_start_ms + window_ms) / 1000)
        key = f"{KEY_PREFIX}:{identity}:{window_start_ms}"

        try:
            count = await self._store.increment(key)
        except CounterStoreError as exc:
            logger.warning(
                "rate_limit.store_unavailable",
                extra={
                    "identity_hash": hash_identifier(identity),
                    "error_msg": str(exc),
                    "decision": "fail_open",
                    "alert": True,
                },
            )
            return RateDecision(
                allowed=True,
                limit=limit,
                remaining=limit,
                reset_at=reset_at,
                fail_open=True,
            )

        if count == 1:
            await self._set_window_expiry(key, identity, window_ms)

        remaining = max(0, limit - count)
        if count <= limit:
            return RateDecision(
                allowed=True,
                limit=limit,
                remaining=remaining,
                reset_at=reset_at,
            )

        return RateDecision(
            allowed=False,
            limit=limit,
            remaining=remaining,
            reset_at=reset_at,
            retry_after_seconds=max(0, math.ceil(reset_at - now)),
        )

    async def _set_window_expiry(self, key: str, identity: str, window_ms: int) -> None:
        try:
            await self._store.set_expiry(key, max(1, math.ceil(window_ms / 1000)))
        except CounterStoreError as exc:
            # The count is already recorded; the window key embeds its start
            # time, so a missing TTL only leaves a stale key behind.
            logger.warning(
                "rate_limit.expiry_failed",
                extra={
                    "identity_hash": hash_identifier(identity),
                    "error_msg": str(exc),
                    "alert": True,
                },
            )


def _check_limits(limit: int, window_ms: int) -> None:
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if window_ms <= 0:
        raise ValueError("window_ms must be > 0")
