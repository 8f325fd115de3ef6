"""Fixed-window request limit.

A ``Limit`` holds one rule (``allow`` hits per window, reached at a fraction
``threshold`` of ``allow``) together with the live counter state of the current
window. Counter state is persisted between requests through a
``AbstractRateLimitStore`` as a small JSON payload::

    {"timestamp": <window expiry, epoch seconds>, "hits": <int>}

The expiry timestamp travels with the payload so stores without native TTL
support can still detect a rolled-over window.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Callable

from pydantic import ValidationError

from client_ratelimit.core.errors import InvalidConfigurationError, MalformedLimitDataError
from client_ratelimit.limits.schemas import LimitStoreData

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def _validate_threshold(threshold: float) -> None:
    if not 0 <= threshold <= 1:
        raise InvalidConfigurationError(
            code="invalid_threshold",
            message=(
                "Threshold must be a float between 0 and 1. "
                "For example a 85% threshold would be 0.85."
            ),
            details={"threshold": threshold},
        )


class Limit:
    """One rate limiting rule plus its counter state.

    Build limits fluently; the last window selector wins::

        Limit.allow(60).every_minute()
        Limit.allow(1000, threshold=0.9).every_day()
        Limit.allow(5).every_seconds(10, "burst").name("search-burst")
    """

    def __init__(self, allow: int, threshold: float = 1, *, clock: Clock = time.time) -> None:
        if allow < 1:
            raise InvalidConfigurationError(
                code="invalid_allow",
                message="allow must be >= 1",
                details={"allow": allow},
            )
        _validate_threshold(threshold)

        self._allow = allow
        self._threshold = float(threshold)
        self._clock = clock

        self._hits = 0
        self._exceeded = False
        self._expiry_timestamp: int | None = None
        self._release_in_seconds: int | None = None
        self._time_to_live_key: str | None = None
        self._until_midnight = False
        self._name: str | None = None
        self._object_name: str | None = None

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"Limit(allow={self._allow}, threshold={self._threshold}, "
            f"every={self._time_to_live_key or self._release_in_seconds}, "
            f"hits={self._hits}, exceeded={self._exceeded})"
        )

    @classmethod
    def allow(cls, allow: int, threshold: float = 1, *, clock: Clock = time.time) -> "Limit":
        return cls(allow, threshold, clock=clock)

    # Window selectors

    def every_seconds(self, seconds: int, time_to_live_key: str | None = None) -> "Limit":
        """Set the window length.

        Args:
            seconds: Window length in seconds.
            time_to_live_key: Optional label used instead of ``seconds`` in the
                default name (e.g. ``"midnight"`` for a moving window length).
        """
        if seconds < 1:
            raise InvalidConfigurationError(
                code="invalid_window",
                message="Window length must be at least one second",
                details={"context": {"seconds": seconds}},
            )
        self._release_in_seconds = int(seconds)
        self._time_to_live_key = time_to_live_key
        self._until_midnight = False
        return self

    def every_minute(self) -> "Limit":
        return self.every_seconds(MINUTE)

    def every_five_minutes(self) -> "Limit":
        return self.every_seconds(5 * MINUTE)

    def every_thirty_minutes(self) -> "Limit":
        return self.every_seconds(30 * MINUTE)

    def every_hour(self) -> "Limit":
        return self.every_seconds(HOUR)

    def every_six_hours(self) -> "Limit":
        return self.every_seconds(6 * HOUR)

    def every_twelve_hours(self) -> "Limit":
        return self.every_seconds(12 * HOUR)

    def every_day(self) -> "Limit":
        return self.every_seconds(DAY)

    def until_midnight_tonight(self) -> "Limit":
        """Window that ends at the next local midnight.

        The length is measured with the current clock and measured again
        whenever the clock is replaced through ``use_clock()``.
        """
        now = datetime.fromtimestamp(self._clock())
        midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
        seconds = max(1, int((midnight - now).total_seconds()))
        self.every_seconds(seconds, "midnight")
        self._until_midnight = True
        return self

    # Naming

    def name(self, name: str | None) -> "Limit":
        """Use an explicit store key instead of the derived default name."""
        self._name = name
        return self

    def set_object_name(self, object_name: str) -> "Limit":
        """Record the label of the connector/request that owns this limit."""
        self._object_name = object_name
        return self

    def get_name(self) -> str:
        if self._name is not None:
            return self._name
        every = self._time_to_live_key or str(self._release_in_seconds)
        return f"{self._object_name}_allow_{self._allow}_every_{every}"

    def use_clock(self, clock: Clock) -> "Limit":
        self._clock = clock
        if self._until_midnight:
            self.until_midnight_tonight()
        return self

    def validate(self) -> None:
        """Fail fast when the limit cannot be stored or checked.

        Raises:
            InvalidConfigurationError: If no window was selected, or the limit
                has neither an explicit name nor an owner label.
        """
        if self._release_in_seconds is None:
            raise InvalidConfigurationError(
                code="missing_window",
                message=(
                    f"Limit allowing {self._allow} hits has no window. "
                    "Call every_seconds() or one of the every_* presets."
                ),
                details={"allow": self._allow},
            )
        if self._name is None and self._object_name is None:
            raise InvalidConfigurationError(
                code="missing_limit_name",
                message="Limit has neither a name nor an owner label",
                details={"allow": self._allow},
            )

    # Counter state

    def get_allow(self) -> int:
        return self._allow

    def get_threshold(self) -> float:
        return self._threshold

    def get_hits(self) -> int:
        return self._hits

    def get_release_in_seconds(self) -> int | None:
        return self._release_in_seconds

    def hit(self, amount: int = 1) -> "Limit":
        """Count ``amount`` hits. Does nothing once the limit was exceeded."""
        if not self._exceeded:
            self._hits += amount
        return self

    def exceeded(self, release_in_seconds: int | None = None) -> None:
        """Trip the limit from an external signal (e.g. an HTTP 429).

        Pins ``hits`` at ``allow`` so the limit stays reached for the rest of
        the window.

        Args:
            release_in_seconds: When given, the window is restarted to end this
                many seconds from now (e.g. from a Retry-After header).
        """
        self._exceeded = True
        self._hits = self._allow

        if release_in_seconds is not None:
            self._expiry_timestamp = int(self._clock()) + int(release_in_seconds)

    def has_exceeded(self) -> bool:
        return self._exceeded

    def has_reached_limit(self, threshold: float | None = None) -> bool:
        """Whether hits have reached ``threshold * allow`` (inclusive).

        Args:
            threshold: Override of the configured threshold for this check.

        Raises:
            InvalidConfigurationError: If threshold is outside [0, 1].
        """
        if threshold is None:
            threshold = self._threshold
        _validate_threshold(threshold)

        return self._hits >= threshold * self._allow

    # Window expiry

    def get_expiry_timestamp(self) -> int:
        """Epoch second at which the current window ends; computed once."""
        if self._expiry_timestamp is None:
            if self._release_in_seconds is None:
                self.validate()
            self._expiry_timestamp = int(self._clock()) + self._release_in_seconds
        return self._expiry_timestamp

    def set_expiry_timestamp(self, expiry_timestamp: int | None) -> "Limit":
        self._expiry_timestamp = expiry_timestamp
        return self

    def get_remaining_seconds(self) -> int:
        return round(self.get_expiry_timestamp() - self._clock())

    # Store (de)serialization

    def serialize_store_data(self) -> str:
        return LimitStoreData(
            timestamp=self.get_expiry_timestamp(),
            hits=self._hits,
        ).model_dump_json()

    def unserialize_store_data(self, payload: str | bytes) -> "Limit":
        """Merge stored counter state into this limit.

        A payload whose window already ended is ignored and the limit keeps its
        fresh state.

        Raises:
            MalformedLimitDataError: If the payload is not valid JSON or lacks
                ``timestamp``/``hits``.
        """
        try:
            data = LimitStoreData.model_validate_json(payload)
        except ValidationError as exc:
            raise MalformedLimitDataError(
                code="malformed_limit_data",
                message=f"Stored data for limit '{self.get_name()}' is malformed",
                details={
                    "limit_name": self.get_name(),
                    "context": {"errors": exc.errors(include_url=False, include_input=False)},
                },
            ) from exc

        if data.timestamp < self._clock():
            logger.debug(
                "rate_limit.window_rolled_over",
                extra={"limit_name": self.get_name(), "expired_at": data.timestamp},
            )
            return self

        self.set_expiry_timestamp(data.timestamp)
        self.hit(data.hits)
        return self
