"""HTTP transport with quota gating and exponential-backoff retry."""
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from market_gateway.providers.core.exceptions import (NetworkError,
                                                      QuotaExceeded,
                                                      RateLimited,
                                                      RequestRejected,
                                                      UpstreamUnavailable)
from market_gateway.providers.core.protocols import Sleeper
from market_gateway.providers.core.quota import QuotaTracker

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0


@dataclass(frozen=True)
class ApiRequest:
    """One logical GET against a provider."""

    path: str
    category: str
    params: dict[str, Any] = field(default_factory=dict)
    # Already charged through RetryingTransport.admit (one unit per logical lookup).
    admitted: bool = False


@dataclass(frozen=True)
class RetryEvent:
    """Emitted before each retry so callers can show progress."""

    provider: str
    path: str
    attempt: int
    max_retries: int
    status: int | None
    delay: float


def is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


class RetryingTransport:
    """Sends ApiRequests over one httpx.AsyncClient.

    The first attempt of every request must pass ``QuotaTracker.try_consume``
    (see ``admit``); a refusal fails fast with QuotaExceeded. Requests marked
    ``admitted`` were charged up front, so their first attempt is neither gated
    nor counted. 429, 5xx and transport errors are
    retried up to ``max_retries`` attempts in total, sleeping
    ``retry_delay * 2 ** (attempt - 1)`` between attempts. Retry attempts are
    counted with ``record_attempt`` so an upstream 429 does not stop the
    retry budget from being spent.
    """

    def __init__(
        self,
        provider_name: str,
        base_url: str,
        quota: QuotaTracker,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 10.0,
        sleep: Sleeper = asyncio.sleep,
        on_retry: Callable[[RetryEvent], None] | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            provider_name: Label used in logs, events and errors (e.g. "FMP").
            base_url: Provider base URL.
            quota: The provider's QuotaTracker.
            params: Query params sent with every request (e.g. the API key).
            headers: Headers sent with every request.
            max_retries: Maximum attempts per request, first one included.
            retry_delay: Base backoff delay in seconds.
            timeout: httpx client timeout in seconds.
            sleep: Awaitable sleep used for backoff.
            on_retry: Optional callback invoked before each retry.
            http_transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self.provider_name = provider_name
        self.base_url = base_url
        self._quota = quota
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._on_retry = on_retry
        self._client = httpx.AsyncClient(
            base_url=base_url,
            params=params,
            headers={"Accept": "application/json", **(headers or {})},
            timeout=timeout,
            transport=http_transport,
        )

    @property
    def quota(self) -> QuotaTracker:
        return self._quota

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)."""
        return self._retry_delay * 2 ** (attempt - 1)

    def admit(self, category: str) -> None:
        """Charge one request to the quota. Raises QuotaExceeded when refused."""
        if not self._quota.try_consume(category):
            raise QuotaExceeded(
                f"{self.provider_name} daily limit reached. Try again later."
            )

    async def send(self, request: ApiRequest) -> httpx.Response:
        """Send request; return a 2xx response or raise a GatewayError."""
        if not request.admitted:
            self.admit(request.category)

        attempt = 1
        while True:
            status: int | None = None
            try:
                response = await self._client.get(request.path, params=request.params)
            except httpx.TransportError as exc:
                logger.warning(
                    "%s %s transport error on attempt %d/%d: %s",
                    self.provider_name, request.path, attempt, self._max_retries, exc,
                )
                if attempt >= self._max_retries:
                    raise NetworkError(
                        f"Network error connecting to {self.provider_name}: {exc}"
                    ) from exc
            else:
                status = response.status_code
                if status < 400:
                    return response
                if status == 429:
                    self._quota.report_upstream_rate_limited()
                if not is_retryable_status(status):
                    raise RequestRejected(status, response.text)
                logger.warning(
                    "%s %s returned %d on attempt %d/%d",
                    self.provider_name, request.path, status, attempt, self._max_retries,
                )
                if attempt >= self._max_retries:
                    if status == 429:
                        raise RateLimited(
                            f"{self.provider_name} rate limit exceeded. Try again in 30 minutes."
                        )
                    raise UpstreamUnavailable(status)

            delay = self.backoff_delay(attempt)
            self._notify_retry(request, attempt, status, delay)
            await self._sleep(delay)
            attempt += 1
            self._quota.record_attempt(request.category)

    def _notify_retry(
        self, request: ApiRequest, attempt: int, status: int | None, delay: float
    ) -> None:
        logger.info(
            "Retrying %s %s in %.1fs (attempt %d/%d)",
            self.provider_name, request.path, delay, attempt + 1, self._max_retries,
        )
        if self._on_retry is not None:
            self._on_retry(
                RetryEvent(
                    provider=self.provider_name,
                    path=request.path,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                    status=status,
                    delay=delay,
                )
            )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
