"""Redis-backed counter store shared by every client pointing at one server."""

from __future__ import annotations

import logging

import redis

from client_ratelimit.adapters.store.base import AbstractRateLimitStore

logger = logging.getLogger(__name__)


class RedisRateLimitStore(AbstractRateLimitStore):
    """Store limits with ``GET``/``SETEX`` so idle windows expire on their own.

    Connection and timeout errors raised by the client propagate unchanged.
    """

    def __init__(self, client: redis.Redis, *, key_prefix: str = "") -> None:
        super().__init__(key_prefix=key_prefix)
        self._redis = client

    @classmethod
    def from_url(cls, redis_url: str, *, key_prefix: str = "") -> "RedisRateLimitStore":
        client = redis.Redis.from_url(redis_url, decode_responses=True)
        logger.info("rate_limit.store.redis_connected", extra={"key_prefix": key_prefix})
        return cls(client, key_prefix=key_prefix)

    def get(self, key: str) -> str | None:
        raw = self._redis.get(self._make_key(key))
        if raw is None:
            return None
        if isinstance(raw, bytes):  # pragma: no cover - depends on redis config
            raw = raw.decode("utf-8")
        return raw

    def set(self, key: str, value: str, ttl: int) -> bool:
        # SETEX rejects non-positive expiry times
        return bool(self._redis.setex(self._make_key(key), max(1, int(ttl)), value))

    def close(self) -> None:
        self._redis.close()
