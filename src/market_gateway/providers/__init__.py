"""Market data providers for stocks and crypto.

- FmpProvider: quotes, history, search and profiles via Financial Modeling Prep
- CoinGeckoProvider: crypto prices and market charts via CoinGecko

Every provider sends through its own RetryingTransport, which charges the
provider's QuotaTracker and applies the retry policy.

Example:
    quota = QuotaTracker("FMP", soft_limit=495)
    transport = RetryingTransport("FMP", FmpProvider.BASE_URL, quota, params={"apikey": key})
    async with FmpProvider(transport) as provider:
        quote = await provider.get_quote("AAPL")
        print(f"{quote.symbol}: ${quote.price}")
"""
from market_gateway.providers.core import (MarketProviderABC, QuotaTracker,
                                           ResponseCache, RetryingTransport)
from market_gateway.providers.crypto import CoinGeckoProvider
from market_gateway.providers.stocks import FmpProvider

__all__ = [
    "CoinGeckoProvider",
    "FmpProvider",
    "MarketProviderABC",
    "QuotaTracker",
    "ResponseCache",
    "RetryingTransport",
]
