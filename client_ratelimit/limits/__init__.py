"""Limit entity and the helper that names a set of limits."""

from client_ratelimit.limits.helper import configure_limits
from client_ratelimit.limits.limit import Limit

__all__ = [
    "Limit",
    "configure_limits",
]
