"""Abstract base class for market data providers."""
from abc import ABC, abstractmethod

from market_gateway.providers.core.quota import QuotaTracker
from market_gateway.providers.core.transport import ApiRequest, RetryingTransport
from market_gateway.schemas import HistoryBar


class MarketProviderABC(ABC):
    """Base interface for all market data providers.

    Each provider speaks to one upstream through its own RetryingTransport,
    so quota accounting and retry policy apply to every call it makes.
    Providers only fetch and shape; caching lives in the services.
    """

    def __init__(self, transport: RetryingTransport) -> None:
        """Initialize provider. Subclasses may override and should call super().__init__()."""
        self._transport = transport

    @property
    def name(self) -> str:
        return self._transport.provider_name

    @property
    def quota(self) -> QuotaTracker:
        return self._transport.quota

    def admit(self, category: str) -> None:
        """Charge one quota unit for a lookup made of several admitted requests."""
        self._transport.admit(category)

    async def _get_json(self, path: str, category: str, *, admitted: bool = False, **params):
        response = await self._transport.send(
            ApiRequest(path=path, category=category, params=params, admitted=admitted)
        )
        return response.json()

    @abstractmethod
    async def get_history(self, symbol: str, days: int) -> list[HistoryBar]:
        """Fetch the price series for the last ``days`` days.

        Args:
            symbol: Provider symbol or id (already normalized).
            days: Size of the window in days.

        Returns:
            HistoryBars ordered ascending by date.
        """

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._transport.aclose()

    async def __aenter__(self) -> "MarketProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
