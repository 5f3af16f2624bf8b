"""Cache-first lookup plumbing shared by the securities and crypto services.

LookupService wraps a provider with the response cache, the in-flight request
map and error mapping. Subclasses only describe *what* to fetch and under
which cache key.
"""
import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from market_gateway.providers.core import (CacheCategory, GatewayError,
                                           MarketProviderABC,
                                           ProviderErrorMapper, ResponseCache)
from market_gateway.schemas import UsageSnapshot
from market_gateway.services.utils import InFlightRequests

T = TypeVar("T")

# Exceptions from providers we map to GatewayErrors; all others propagate (e.g. bugs).
_PROVIDER_EXCEPTIONS: tuple[type[Exception], ...] = (
    GatewayError,
    ValueError,
    KeyError,
    TypeError,
    IndexError,
    TimeoutError,
    asyncio.TimeoutError,
    httpx.HTTPError,
)


class LookupService:
    """Base service over a market provider: cache first, then fetch, shape and store."""

    def __init__(
        self,
        provider: MarketProviderABC,
        cache: ResponseCache,
        error_mapper: ProviderErrorMapper,
        *,
        in_flight: InFlightRequests | None = None,
    ) -> None:
        """Initialize with provider, shared cache and error mapping config.

        Args:
            provider: The market data provider (e.g. FmpProvider, CoinGeckoProvider).
            cache: Process-wide ResponseCache.
            error_mapper: Maps provider exceptions to GatewayErrors.
            in_flight: Optional map sharing concurrent identical fetches.
                When None every caller issues its own outbound call.
        """
        self._provider = provider
        self._cache = cache
        self._error_mapper = error_mapper
        self._in_flight = in_flight

    @property
    def error_mapper(self) -> ProviderErrorMapper:
        return self._error_mapper

    async def _cached(
        self,
        category: CacheCategory,
        key: str,
        ttl_minutes: float,
        fetch: Callable[[], Awaitable[T]],
        *,
        symbol: str | None = None,
    ) -> T:
        """Return the cached value for key or fetch, store and return it.

        The cache is written only after fetch succeeds, so a failed lookup
        leaves no partial entry behind.
        """
        cached = self._cache.get(category, key, ttl_minutes)
        if cached is not None:
            return cached

        async def load() -> T:
            value = await self._fetch(fetch, symbol=symbol)
            self._cache.set(category, key, value)
            return value

        if self._in_flight is None:
            return await load()
        return await self._in_flight.run(category.value, key, load)

    async def _fetch(
        self, fetch: Callable[[], Awaitable[T]], *, symbol: str | None = None
    ) -> T:
        """Run fetch without caching, mapping provider failures to GatewayErrors."""
        try:
            return await fetch()
        except _PROVIDER_EXCEPTIONS as e:
            self._error_mapper.raise_error(e, symbol=symbol)

    def get_usage_snapshot(self) -> UsageSnapshot:
        """Quota state of this service's provider plus cache stats."""
        quota = self._provider.quota
        return UsageSnapshot(
            providers={quota.provider_name: quota.get_snapshot()},
            cache=self._cache.stats(),
        )

    async def close(self) -> None:
        await self._provider.close()
