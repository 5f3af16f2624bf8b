"""Domain concept for mapping provider exceptions to gateway errors."""
import asyncio
from dataclasses import dataclass

import httpx

from market_gateway.providers.core.exceptions import (GatewayError,
                                                      NetworkError, NotFound,
                                                      QuotaExceeded,
                                                      RateLimited,
                                                      RequestRejected,
                                                      UnsupportedExchange,
                                                      UpstreamUnavailable)


@dataclass(frozen=True)
class ProviderErrorMapper:
    """Maps provider/parsing exceptions to the GatewayError taxonomy.

    Inject this into services to centralize error mapping per domain
    (e.g. crypto, stocks) with appropriate resource and API names.
    """

    resource_name: str = "Resource"
    api_name: str = "API"

    def _not_found(self, symbol: str | None) -> str:
        if symbol is None:
            return f"{self.resource_name} not found"
        return f"{self.resource_name} '{symbol}' not found"

    def to_error(
        self,
        exc: Exception,
        symbol: str | None = None,
    ) -> GatewayError:
        """Map an exception raised while fetching or shaping to a GatewayError.

        Args:
            exc: The exception raised by the provider or service.
            symbol: Optional symbol/identifier to include in messages (e.g. "AAPL").

        Returns:
            The GatewayError to raise. GatewayErrors pass through unchanged.
        """
        if isinstance(exc, GatewayError):
            return exc
        # pydantic.ValidationError and json decode errors are ValueErrors
        if isinstance(exc, (ValueError, KeyError, TypeError, IndexError)):
            return NotFound(self._not_found(symbol))
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            return NetworkError(f"Request to {self.api_name} timed out")
        if isinstance(exc, httpx.TransportError):
            return NetworkError(f"Network error connecting to {self.api_name}")
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            if status == 429:
                return RateLimited(f"{self.api_name} rate limit exceeded")
            if status >= 500:
                return UpstreamUnavailable(status)
            return RequestRejected(status, exc.response.text)
        return GatewayError(f"{self.api_name} error: {exc}")

    def raise_error(
        self,
        exc: Exception,
        symbol: str | None = None,
    ) -> None:
        """Map exception and raise the resulting GatewayError. Never returns."""
        error = self.to_error(exc, symbol=symbol)
        if error is exc:
            raise error
        raise error from exc

    def user_message(self, error: GatewayError) -> str:
        """Short message suitable for a toast or banner."""
        if isinstance(error, QuotaExceeded):
            return "API daily limit reached. Try again later."
        if isinstance(error, RateLimited):
            return "API daily limit reached. Try again in 30 minutes."
        if isinstance(error, UnsupportedExchange):
            return f"{error.exchange} stocks are not supported in the free tier."
        if isinstance(error, RequestRejected):
            if error.status in (401, 403):
                return f"{self.api_name} access denied. Please check your API key."
            if error.status == 404:
                return f"{self.resource_name} not found"
            return f"Bad request to {self.api_name}."
        if isinstance(error, NetworkError):
            return f"Network error connecting to {self.api_name}. Please check your connection."
        if isinstance(error, UpstreamUnavailable):
            return f"{self.api_name} is unavailable. Please try again later."
        if isinstance(error, NotFound):
            return str(error) or f"{self.resource_name} not found"
        return f"{self.api_name} error"
