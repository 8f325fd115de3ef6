"""Counter store interface.

Limits depend on this abstraction (not a concrete backend) so counters can be
kept in process memory for a single worker or in Redis when many workers share
one API budget. Backends only implement ``get``/``set``; the limit-aware
``hydrate``/``commit`` pair is built on top of them once, here.

Reads and writes are separate, unlocked calls. Concurrent clients sharing a
store may lose hits to each other: counting is best-effort.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from client_ratelimit.limits.limit import Limit

logger = logging.getLogger(__name__)


class AbstractRateLimitStore(ABC):
    """Interface for limit counter stores."""

    def __init__(self, *, key_prefix: str = "") -> None:
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the serialized payload stored under ``key``.

        Args:
            key: Limit name.

        Returns:
            The payload, or None if the key is absent or expired.
        """
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str, ttl: int) -> bool:
        """Store ``value`` under ``key`` for ``ttl`` seconds.

        Returns:
            True when the backend acknowledged the write.
        """
        raise NotImplementedError

    def hydrate(self, limit: Limit) -> Limit:
        """Load the stored counter state into ``limit``.

        An absent key leaves the limit untouched (first use of a window).
        """
        payload = self.get(limit.get_name())
        if payload is None:
            return limit
        return limit.unserialize_store_data(payload)

    def commit(self, limit: Limit) -> bool:
        """Persist ``limit`` until its window ends."""
        ttl = limit.get_remaining_seconds()
        stored = self.set(limit.get_name(), limit.serialize_store_data(), ttl)

        logger.debug(
            "rate_limit.committed",
            extra={
                "limit_name": limit.get_name(),
                "hits": limit.get_hits(),
                "ttl_s": ttl,
                "stored": stored,
            },
        )
        return stored
