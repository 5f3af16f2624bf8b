"""Crypto lookups: current price and market-chart history."""
from market_gateway.providers.core import (CacheCategory, ProviderErrorMapper,
                                           ResponseCache)
from market_gateway.providers.crypto import CryptoProviderABC, resolve_coin_id
from market_gateway.schemas import CryptoPrice, HistoryBar
from market_gateway.services.lookup_service import LookupService
from market_gateway.services.utils import InFlightRequests

PRICE_TTL_MINUTES = 5
HISTORY_TTL_MINUTES = 60


class CryptoLookupService(LookupService):
    """Cached, quota-aware crypto lookups over a CryptoProviderABC.

    Every input is resolved to its canonical id first, so "btc" and
    "bitcoin" share one cache entry and one upstream id.
    """

    def __init__(
        self,
        provider: CryptoProviderABC,
        cache: ResponseCache,
        error_mapper: ProviderErrorMapper | None = None,
        *,
        in_flight: InFlightRequests | None = None,
    ) -> None:
        super().__init__(
            provider,
            cache,
            error_mapper or ProviderErrorMapper(resource_name="Cryptocurrency", api_name="CoinGecko"),
            in_flight=in_flight,
        )
        self._crypto = provider

    @staticmethod
    def resolve_id(symbol: str) -> str:
        return resolve_coin_id(symbol)

    async def price(self, symbol: str) -> CryptoPrice:
        """Current USD price, cached for 5 minutes."""
        coin = resolve_coin_id(symbol)
        return await self._cached(
            CacheCategory.CRYPTO,
            coin,
            PRICE_TTL_MINUTES,
            lambda: self._crypto.get_price(coin),
            symbol=coin,
        )

    async def history(self, symbol: str, days: int) -> list[HistoryBar]:
        """Market-chart series for the last ``days`` days, oldest first; cached 60 minutes."""
        coin = resolve_coin_id(symbol)
        return await self._cached(
            CacheCategory.CRYPTO,
            f"history-{coin}-{days}",
            HISTORY_TTL_MINUTES,
            lambda: self._crypto.get_history(coin, days),
            symbol=coin,
        )
