"""HTTP integration - runs limit checks around outbound requests."""

from client_ratelimit.http.connector import RateLimitedConnector
from client_ratelimit.http.rate_limiting import (
    RateLimited,
    RateLimiter,
    is_too_many_requests,
    parse_retry_after,
)

__all__ = [
    "RateLimited",
    "RateLimitedConnector",
    "RateLimiter",
    "is_too_many_requests",
    "parse_retry_after",
]
