"""Stock market data providers."""
from market_gateway.providers.stocks.fmp.fmp_provider import FmpProvider
from market_gateway.providers.stocks.stocks_provider_abc import StocksProviderABC

__all__ = ["FmpProvider", "StocksProviderABC"]
