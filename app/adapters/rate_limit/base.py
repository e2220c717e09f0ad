"""Counter store interface.

The rate limiter depends on this abstraction (not a concrete backend) so the
storage can be swapped between the in-memory store and Redis through config.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractCounterStore(ABC):
    """Time-expiring key/value counter store.

    Implementations must make ``increment`` atomic: concurrent callers each
    observe a distinct count. Backend failures are raised as
    ``app.core.errors.CounterStoreError``.
    """

    @abstractmethod
    async def increment(self, key: str) -> int:
        """Increment the counter stored at ``key`` and return the new value.

        A missing or expired key starts from zero, so the first call returns 1.
        """
        raise NotImplementedError

    @abstractmethod
    async def set_expiry(self, key: str, seconds: int) -> None:
        """Expire ``key`` after ``seconds`` seconds."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources (no-op by default)."""
