"""Counter store adapters - abstracts over where limit counters live."""

from client_ratelimit.adapters.store.base import AbstractRateLimitStore
from client_ratelimit.adapters.store.factory import create_rate_limit_store
from client_ratelimit.adapters.store.in_memory import InMemoryRateLimitStore
from client_ratelimit.adapters.store.redis_store import RedisRateLimitStore

__all__ = [
    "AbstractRateLimitStore",
    "InMemoryRateLimitStore",
    "RedisRateLimitStore",
    "create_rate_limit_store",
]
