"""Typed failures surfaced by the gateway to its callers.

Every error carries a stable ``kind`` so UI code can branch on it without
inspecting messages.
"""


class GatewayError(Exception):
    """Base class for all errors raised at the gateway boundary."""

    kind = "gateway_error"


class NotFound(GatewayError):
    """Upstream returned an empty, absent or malformed payload."""

    kind = "not_found"


class RequestRejected(GatewayError):
    """Upstream rejected the request with a non-retryable 4xx (not 429)."""

    kind = "request_rejected"

    def __init__(self, status: int, body: str = "", message: str | None = None) -> None:
        super().__init__(message or f"Request rejected with status {status}")
        self.status = status
        self.body = body


class RateLimited(GatewayError):
    """Upstream kept answering 429, or the daily quota is already spent."""

    kind = "rate_limited"


class QuotaExceeded(RateLimited):
    """Local soft ceiling or cooldown blocked the call before it was sent."""

    kind = "quota_exceeded"


class UnsupportedExchange(GatewayError):
    """Symbol belongs to an exchange the upstream plan does not cover."""

    kind = "unsupported_exchange"

    def __init__(self, symbol: str, exchange: str) -> None:
        super().__init__(f"{exchange} symbols are not supported: '{symbol}'")
        self.symbol = symbol
        self.exchange = exchange


class UpstreamUnavailable(GatewayError):
    """Retries exhausted on 5xx responses."""

    kind = "upstream_unavailable"

    def __init__(self, status: int | None = None, message: str | None = None) -> None:
        super().__init__(message or f"Upstream unavailable (last status: {status})")
        self.status = status


class NetworkError(UpstreamUnavailable):
    """Transport-level failure (no connectivity, DNS, timeout)."""

    kind = "network_error"

    def __init__(self, message: str = "Network error") -> None:
        super().__init__(status=None, message=message)


__all__ = [
    "GatewayError",
    "NetworkError",
    "NotFound",
    "QuotaExceeded",
    "RateLimited",
    "RequestRejected",
    "UnsupportedExchange",
    "UpstreamUnavailable",
]
