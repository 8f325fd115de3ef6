"""Application-level exception types.

Every failure raised by the rate limiter derives from ``AppError`` so callers
can log and branch on a stable ``code`` plus structured ``details``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from client_ratelimit.limits.limit import Limit


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers."""

    code: str
    message: str
    hint: str
    limit_name: str
    names: list[str]
    allow: int
    hits: int
    threshold: float
    remaining_seconds: int
    store: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for rate limiting failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class InvalidConfigurationError(AppError):
    """Raised when a limit or store is configured with invalid values."""


class DuplicateLimitNameError(InvalidConfigurationError):
    """Raised when two limits of one owner resolve to the same store key."""


class MalformedLimitDataError(AppError):
    """Raised when a stored limit payload cannot be parsed."""


class RateLimitReachedError(AppError):
    """Raised when a limit blocks (or has just exhausted) the request budget.

    The triggering ``Limit`` is kept on the error so callers can compute a
    backoff from ``allow``, ``hits`` and ``remaining_seconds``.
    """

    def __init__(self, limit: "Limit") -> None:
        self.limit = limit
        super().__init__(
            code="rate_limit_reached",
            message=f"Request Rate Limit Reached (Name: {limit.get_name()})",
            details={
                "limit_name": limit.get_name(),
                "allow": limit.get_allow(),
                "hits": limit.get_hits(),
                "remaining_seconds": limit.get_remaining_seconds(),
            },
        )

    @property
    def allow(self) -> int:
        return self.limit.get_allow()

    @property
    def hits(self) -> int:
        return self.limit.get_hits()

    @property
    def remaining_seconds(self) -> int:
        """Seconds until the limit's window resets (never negative)."""
        return max(0, self.limit.get_remaining_seconds())
