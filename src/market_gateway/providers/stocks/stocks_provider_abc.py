"""Abstract base class for stock market data providers."""
from abc import abstractmethod

from market_gateway.providers.core import MarketProviderABC
from market_gateway.providers.stocks.fmp.models import (FmpProfile,
                                                        FmpSearchItem)
from market_gateway.schemas import (NewsArticle, SectorPerformance,
                                    StockQuote)


class StocksProviderABC(MarketProviderABC):
    """Base interface for stock market data providers.

    Extends MarketProviderABC with quote, profile, free-text search, news
    and the market overview (indexes and sectors).
    """

    @abstractmethod
    async def get_quote(
        self, symbol: str, *, category: str = "quote", admitted: bool = False
    ) -> StockQuote:
        """Fetch the current quote; ``category`` is the quota bucket to charge."""

    @abstractmethod
    async def get_profile(self, symbol: str, *, admitted: bool = False) -> FmpProfile:
        """Fetch the company profile for a symbol."""

    @abstractmethod
    async def search(self, term: str, limit: int = 20) -> list[FmpSearchItem]:
        """Free-text search over listed securities (unfiltered)."""

    @abstractmethod
    async def get_news(self, symbol: str, limit: int = 10) -> list[NewsArticle]:
        """Latest news articles for a symbol, newest first."""

    @abstractmethod
    async def get_index_quotes(self, *, admitted: bool = False) -> list[StockQuote]:
        """Quotes of the major market indexes."""

    @abstractmethod
    async def get_sector_performance(self, *, admitted: bool = False) -> list[SectorPerformance]:
        """Percent change on the day per market sector."""
