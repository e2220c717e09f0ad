"""Counter store adapters used by the rate limiter.

The limiter only needs an atomic increment and a key expiry. The in-memory
store serves single-process deployments and tests; Redis is the shared store
for multi-worker deployments.
"""

from app.adapters.rate_limit.base import AbstractCounterStore
from app.adapters.rate_limit.factory import create_counter_store
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.adapters.rate_limit.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "create_counter_store",
]
