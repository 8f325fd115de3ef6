"""Pre-send and post-response rate limit checks.

``RateLimiter`` runs the check/hit algorithm against any owner that can
resolve its limits and its counter store (the ``RateLimited`` protocol):

1. Before send, every limit is hydrated from the store; the first one that has
   reached its threshold blocks the request with ``RateLimitReachedError``.
2. After a response, every limit is hydrated again, possibly tripped by the
   breach detector (HTTP 429 by default), hit once and committed. If a limit
   was tripped, ``RateLimitReachedError`` is raised after the fact so the
   caller knows the budget is exhausted.

"Now" is read once per phase and shared by all limits of that phase.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Iterable, Mapping, Protocol, runtime_checkable

from client_ratelimit.adapters.store.base import AbstractRateLimitStore
from client_ratelimit.core.errors import RateLimitReachedError
from client_ratelimit.limits.helper import configure_limits
from client_ratelimit.limits.limit import Clock, Limit

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429


@runtime_checkable
class ResponseLike(Protocol):
    status_code: int


@runtime_checkable
class RateLimited(Protocol):
    """Capability of an owner (connector or request) to be rate limited."""

    rate_limit_label: str

    def resolve_limits(self) -> Mapping[Any, Any] | Iterable[Any]:
        """Return fresh limit declarations (a new ``Limit`` per call)."""

    def resolve_rate_limit_store(self) -> AbstractRateLimitStore:
        """Return the store holding the owner's counters."""


BreachDetector = Callable[[Any, Limit], bool]


def is_too_many_requests(response: ResponseLike, limit: Limit) -> bool:
    return response.status_code == TOO_MANY_REQUESTS


def parse_retry_after(response: Any, now: float) -> int | None:
    """Seconds requested by a ``Retry-After`` header, if the response has one.

    Accepts both the delta-seconds and the HTTP-date form.
    """
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("Retry-After")
    if not value:
        return None

    value = value.strip()
    if value.isascii() and value.isdigit():
        return int(value)

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug("rate_limit.retry_after_unparsable", extra={"retry_after": value})
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(0, round(retry_at.timestamp() - now))


def _frozen_clock(now: float) -> Clock:
    return lambda: now


class RateLimiter:
    """Check and count the limits of one ``RateLimited`` owner."""

    def __init__(
        self,
        owner: RateLimited,
        *,
        clock: Clock = time.time,
        breach_detector: BreachDetector = is_too_many_requests,
        respect_retry_after: bool = True,
    ) -> None:
        self.owner = owner
        self._clock = clock
        self._breach_detector = breach_detector
        self._respect_retry_after = respect_retry_after

    def _configured_limits(self, now: float) -> list[Limit]:
        return configure_limits(
            self.owner.resolve_limits(),
            self.owner.rate_limit_label,
            clock=_frozen_clock(now),
        )

    def get_exceeded_limit(self, threshold: float | None = None) -> Limit | None:
        """Return the first limit (declaration order) that has reached its threshold.

        Args:
            threshold: Optional override of every limit's own threshold.
        """
        limits = self._configured_limits(self._clock())
        if not limits:
            return None

        store = self.owner.resolve_rate_limit_store()
        for limit in limits:
            store.hydrate(limit)
            if limit.has_reached_limit(threshold):
                return limit

        return None

    def has_reached_rate_limit(self, threshold: float | None = None) -> bool:
        return self.get_exceeded_limit(threshold) is not None

    def check_before_send(self) -> None:
        """Block the request when any limit has been reached.

        Raises:
            RateLimitReachedError: For the first reached limit.
        """
        limit = self.get_exceeded_limit()
        if limit is None:
            return

        logger.warning(
            "rate_limit.reached",
            extra={
                "limit_name": limit.get_name(),
                "allow": limit.get_allow(),
                "hits": limit.get_hits(),
                "remaining_s": limit.get_remaining_seconds(),
            },
        )
        raise RateLimitReachedError(limit)

    def record_response(self, response: Any) -> None:
        """Count a received response against every limit.

        Args:
            response: Any object exposing ``status_code`` (and optionally
                ``headers``).

        Raises:
            RateLimitReachedError: If the response tripped a limit, or a limit
                was already tripped earlier in its window.
        """
        now = self._clock()
        limits = self._configured_limits(now)
        if not limits:
            return

        store = self.owner.resolve_rate_limit_store()
        exceeded_limit: Limit | None = None

        for limit in limits:
            store.hydrate(limit)

            if exceeded_limit is None and self._breach_detector(response, limit):
                release_in = parse_retry_after(response, now) if self._respect_retry_after else None
                limit.exceeded(release_in)
                logger.warning(
                    "rate_limit.exceeded",
                    extra={
                        "limit_name": limit.get_name(),
                        "status": getattr(response, "status_code", None),
                        "release_in_s": release_in,
                    },
                )

            if exceeded_limit is None and limit.has_exceeded():
                exceeded_limit = limit

            limit.hit()
            store.commit(limit)

        if exceeded_limit is not None:
            raise RateLimitReachedError(exceeded_limit)
