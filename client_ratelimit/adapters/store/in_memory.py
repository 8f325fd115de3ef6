"""In-memory counter store.

Notes:
- Per-process only: every worker process keeps its own counters, so running
  several workers multiplies the effective limit.
- Thread-safe: uses a lock around the shared dict.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from client_ratelimit.adapters.store.base import AbstractRateLimitStore

logger = logging.getLogger(__name__)


@dataclass
class _StoredItem:
    value: str
    expires_at: float


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Dict-backed store with per-key expiry.

    Expired entries read as absent and are evicted lazily on access and on
    every write.
    """

    def __init__(
        self,
        *,
        key_prefix: str = "",
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(key_prefix=key_prefix)
        self._clock = clock
        self._lock = threading.RLock()
        self._items: dict[str, _StoredItem] = {}

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired_locked()
            return len(self._items)

    def get(self, key: str) -> str | None:
        full_key = self._make_key(key)

        with self._lock:
            item = self._items.get(full_key)
            if item is None:
                return None

            if item.expires_at <= self._clock():
                self._items.pop(full_key, None)
                logger.debug("rate_limit.store.expired", extra={"store_key": full_key})
                return None

            return item.value

    def set(self, key: str, value: str, ttl: int) -> bool:
        full_key = self._make_key(key)

        with self._lock:
            self._evict_expired_locked()
            self._items[full_key] = _StoredItem(value=value, expires_at=self._clock() + ttl)

        return True

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def _evict_expired_locked(self) -> None:
        now = self._clock()
        expired_keys = [k for k, item in self._items.items() if item.expires_at <= now]
        for key in expired_keys:
            self._items.pop(key, None)
