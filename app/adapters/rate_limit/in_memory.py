"""In-memory counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractCounterStore


@dataclass
class _CounterState:
    count: int
    expires_at: float | None


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store keeping ``key -> count`` with optional expiry in a dict.

    Expired entries are dropped lazily on access and swept whenever the store
    grows past ``max_keys``.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits. Use the Redis store for shared limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        max_keys: int = 10_000,
    ) -> None:
        """Initialize the in-memory store.

        Args:
            clock: Time source function returning UNIX time in seconds.
            max_keys: Number of keys after which expired entries are swept.

        Raises:
            ValueError: If max_keys is invalid.
        """
        if max_keys < 1:
            raise ValueError("max_keys must be >= 1")

        self._clock = clock
        self._max_keys = max_keys
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _CounterState] = {}

    def _get_live_state(self, key: str, now: float) -> _CounterState | None:
        state = self._state_by_key.get(key)
        if state is not None and state.expires_at is not None and state.expires_at <= now:
            del self._state_by_key[key]
            return None
        return state

    def _sweep_expired_locked(self, now: float) -> None:
        expired = [
            key
            for key, state in self._state_by_key.items()
            if state.expires_at is not None and state.expires_at <= now
        ]
        for key in expired:
            del self._state_by_key[key]

    async def increment(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            state = self._get_live_state(key, now)
            if state is None:
                if len(self._state_by_key) >= self._max_keys:
                    self._sweep_expired_locked(now)
                state = _CounterState(count=0, expires_at=None)
                self._state_by_key[key] = state
            state.count += 1
            return state.count

    async def set_expiry(self, key: str, seconds: int) -> None:
        now = self._clock()
        with self._lock:
            state = self._get_live_state(key, now)
            if state is not None:
                state.expires_at = now + seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)
