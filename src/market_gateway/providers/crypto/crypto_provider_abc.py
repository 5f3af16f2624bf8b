"""Abstract base class for cryptocurrency data providers."""
from abc import abstractmethod

from market_gateway.providers.core import MarketProviderABC
from market_gateway.schemas import CryptoPrice


class CryptoProviderABC(MarketProviderABC):
    """Base interface for cryptocurrency market data providers.

    Extends MarketProviderABC with a current USD price by canonical coin id.
    """

    @abstractmethod
    async def get_price(self, coin_id: str) -> CryptoPrice:
        """Fetch the current price, 24h change/volume and market cap."""
