"""Factory for creating the configured counter store."""

from app.adapters.rate_limit.base import AbstractCounterStore
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.adapters.rate_limit.redis_store import RedisCounterStore
from app.core.config import RateLimitSettings


def create_counter_store(rate_limit_settings: RateLimitSettings) -> AbstractCounterStore:
    """Instantiate the counter store selected by ``RATE_LIMIT_STORAGE``.

    Args:
        rate_limit_settings: Rate limiting section of the application settings.

    Returns:
        AbstractCounterStore: In-memory store or Redis store.
    """
    if rate_limit_settings.storage == "redis":
        return RedisCounterStore.from_url(rate_limit_settings.redis_url)

    return InMemoryCounterStore()
