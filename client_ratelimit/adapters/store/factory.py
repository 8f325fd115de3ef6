"""Factory for the configured counter store."""

from __future__ import annotations

import logging

from client_ratelimit.adapters.store.base import AbstractRateLimitStore
from client_ratelimit.adapters.store.in_memory import InMemoryRateLimitStore
from client_ratelimit.adapters.store.redis_store import RedisRateLimitStore
from client_ratelimit.core.config import RateLimitSettings, settings
from client_ratelimit.core.errors import InvalidConfigurationError

logger = logging.getLogger(__name__)


def create_rate_limit_store(
    rate_limit_settings: RateLimitSettings | None = None,
) -> AbstractRateLimitStore:
    """Instantiate the store backend selected by configuration.

    Args:
        rate_limit_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractRateLimitStore: Configured store instance.

    Raises:
        InvalidConfigurationError: If the backend is unknown or the Redis URL
            is missing.
    """
    cfg = rate_limit_settings or settings.rate_limit
    backend = cfg.store.lower()

    if backend == "memory":
        logger.info("rate_limit.store.selected", extra={"store": "memory"})
        return InMemoryRateLimitStore(key_prefix=cfg.key_prefix)

    if backend == "redis":
        if not cfg.redis_url:
            raise InvalidConfigurationError(
                code="missing_redis_url",
                message="Redis store requires RATE_LIMIT_REDIS_URL environment variable",
                details={"store": "redis"},
            )
        logger.info("rate_limit.store.selected", extra={"store": "redis"})
        return RedisRateLimitStore.from_url(cfg.redis_url, key_prefix=cfg.key_prefix)

    raise InvalidConfigurationError(
        code="unknown_store",
        message=f"Unknown rate limit store: '{backend}'. Supported stores: memory, redis",
        details={"store": backend},
    )
