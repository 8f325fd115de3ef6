"""Multi-window request rate limiting for outbound HTTP clients."""

from client_ratelimit.adapters.store import (
    AbstractRateLimitStore,
    InMemoryRateLimitStore,
    RedisRateLimitStore,
    create_rate_limit_store,
)
from client_ratelimit.core.errors import (
    AppError,
    DuplicateLimitNameError,
    InvalidConfigurationError,
    MalformedLimitDataError,
    RateLimitReachedError,
)
from client_ratelimit.http import RateLimitedConnector, RateLimiter
from client_ratelimit.limits import Limit, configure_limits

__all__ = [
    "AbstractRateLimitStore",
    "AppError",
    "DuplicateLimitNameError",
    "InMemoryRateLimitStore",
    "InvalidConfigurationError",
    "Limit",
    "MalformedLimitDataError",
    "RateLimitReachedError",
    "RateLimitedConnector",
    "RateLimiter",
    "RedisRateLimitStore",
    "configure_limits",
    "create_rate_limit_store",
]
