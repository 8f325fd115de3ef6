"""Rate limited HTTP connector built on ``httpx``.

Subclass ``RateLimitedConnector`` once per remote API, declare the API's limits
and send requests through it::

    class GitHubConnector(RateLimitedConnector):
        def resolve_base_url(self) -> str:
            return "https://api.github.com"

        def resolve_limits(self):
            return [
                Limit.allow(60).every_minute(),
                Limit.allow(5000, threshold=0.9).every_hour(),
            ]

The pre-send check runs as an httpx ``request`` event hook and the
post-response check as a ``response`` event hook, so a blocked request never
reaches the transport.
"""

from __future__ import annotations

import logging
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping

import httpx

from client_ratelimit.adapters.store.base import AbstractRateLimitStore
from client_ratelimit.adapters.store.factory import create_rate_limit_store
from client_ratelimit.core.config import RateLimitSettings, settings
from client_ratelimit.core.logging import clear_request_id, set_request_id
from client_ratelimit.http.rate_limiting import RateLimiter, is_too_many_requests
from client_ratelimit.limits.limit import Clock, Limit

logger = logging.getLogger(__name__)


class RateLimitedConnector(ABC):
    """Base class for API connectors whose requests count against limits.

    Attributes:
        rate_limit_label: Owner label used in default limit names. Defaults to
            the connector class name; set it explicitly to keep store keys
            stable across renames.
    """

    rate_limit_label: str | None = None

    def __init__(
        self,
        *,
        store: AbstractRateLimitStore | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 10.0,
        clock: Clock = time.time,
        rate_limit_settings: RateLimitSettings | None = None,
    ) -> None:
        """Initialize the connector and its underlying httpx client.

        Args:
            store: Counter store; built from configuration when omitted.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).
            timeout: Request timeout in seconds.
            clock: Time source for limit windows.
            rate_limit_settings: Optional settings; defaults to global settings.
        """
        self._settings = rate_limit_settings or settings.rate_limit
        if self.rate_limit_label is None:
            self.rate_limit_label = type(self).__name__

        self._store = store
        self.rate_limiter = RateLimiter(
            self,
            clock=clock,
            breach_detector=self.check_for_too_many_attempts,
            respect_retry_after=self._settings.respect_retry_after,
        )

        event_hooks: dict[str, list[Any]] = {"request": [], "response": []}
        if self._settings.enabled:
            event_hooks["request"].append(self._before_send)
            event_hooks["response"].append(self._after_response)

        self.client = httpx.Client(
            base_url=self.resolve_base_url(),
            headers=self.default_headers(),
            transport=transport,
            timeout=timeout,
            event_hooks=event_hooks,
        )

    def __enter__(self) -> "RateLimitedConnector":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @abstractmethod
    def resolve_base_url(self) -> str:
        """Base URL every request path is joined to."""

    @abstractmethod
    def resolve_limits(self) -> Mapping[Any, Any] | Iterable[Any]:
        """Declare the limits of this connector.

        Called before and after every request, so return new ``Limit``
        instances each time. String keys of a mapping become limit names.
        """

    def resolve_rate_limit_store(self) -> AbstractRateLimitStore:
        if self._store is None:
            self._store = create_rate_limit_store(self._settings)
        return self._store

    def default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    def check_for_too_many_attempts(self, response: httpx.Response, limit: Limit) -> bool:
        """Whether ``response`` signals server-side throttling for ``limit``."""
        return is_too_many_requests(response, limit)

    def get_exceeded_limit(self, threshold: float | None = None) -> Limit | None:
        return self.rate_limiter.get_exceeded_limit(threshold)

    def has_reached_rate_limit(self, threshold: float | None = None) -> bool:
        return self.rate_limiter.has_reached_rate_limit(threshold)

    def send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request through the rate limiter.

        Raises:
            RateLimitReachedError: If a limit blocks the request, or the
                response exhausted a limit.
            httpx.HTTPError: Transport failures, unchanged.
        """
        set_request_id(str(uuid.uuid4()))
        try:
            return self.client.request(method, url, **kwargs)
        finally:
            clear_request_id()

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.send("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.send("POST", url, **kwargs)

    def close(self) -> None:
        self.client.close()

    def _before_send(self, request: httpx.Request) -> None:
        self.rate_limiter.check_before_send()

    def _after_response(self, response: httpx.Response) -> None:
        logger.debug(
            "rate_limit.response",
            extra={"status": response.status_code, "method": response.request.method},
        )
        self.rate_limiter.record_response(response)
