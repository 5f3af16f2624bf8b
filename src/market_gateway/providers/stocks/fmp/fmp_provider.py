"""Financial Modeling Prep market data provider for stocks."""
from datetime import datetime

from market_gateway.providers.core import round2
from market_gateway.providers.core.utils import normalize_stock_symbol
from market_gateway.providers.stocks.fmp.models import (FMP_NEWS_ITEMS,
                                                        FMP_PROFILES,
                                                        FMP_QUOTES,
                                                        FMP_SEARCH_ITEMS,
                                                        FMP_SECTORS,
                                                        FmpHistoricalResponse,
                                                        FmpHistoryParams,
                                                        FmpNewsParams,
                                                        FmpProfile,
                                                        FmpQuote,
                                                        FmpSearchItem,
                                                        FmpSearchParams)
from market_gateway.providers.stocks.stocks_provider_abc import \
    StocksProviderABC
from market_gateway.schemas import (HistoryBar, NewsArticle,
                                    SectorPerformance, StockQuote)


class FmpProvider(StocksProviderABC):
    """Market data provider for stocks via the Financial Modeling Prep REST API.

    The API key travels as the ``apikey`` query param, configured on the
    transport. The free tier enforces an undocumented daily ceiling and
    answers 429 once it is hit.

    Empty or malformed payloads raise ValueError; services map it to NotFound.
    """

    BASE_URL = "https://financialmodelingprep.com/api/v3"

    async def get_quote(
        self, symbol: str, *, category: str = "quote", admitted: bool = False
    ) -> StockQuote:
        """Fetch the current quote for a stock symbol.

        Args:
            symbol: Stock ticker (e.g. "AAPL").
            category: Quota bucket charged for the call.
            admitted: The quota unit was already charged via ``admit``.

        Returns:
            StockQuote shaped from the first /quote row.
        """
        sym = normalize_stock_symbol(symbol)
        data = await self._get_json(f"/quote/{sym}", category, admitted=admitted)
        rows = FMP_QUOTES.validate_python(data)
        if not rows:
            raise ValueError(f"Stock '{sym}' not found")
        return self._quote_from_row(rows[0])

    async def get_profile(self, symbol: str, *, admitted: bool = False) -> FmpProfile:
        """Fetch the company profile for a stock symbol."""
        sym = normalize_stock_symbol(symbol)
        data = await self._get_json(f"/profile/{sym}", "profile", admitted=admitted)
        if isinstance(data, dict):
            data = [data]
        rows = FMP_PROFILES.validate_python(data)
        if not rows:
            raise ValueError(f"Company profile for '{sym}' not found")
        return rows[0]

    async def get_history(self, symbol: str, days: int) -> list[HistoryBar]:
        """Fetch daily closes for the last ``days`` sessions, oldest first."""
        sym = normalize_stock_symbol(symbol)
        params = FmpHistoryParams(timeseries=days).model_dump()
        payload = await self._get_json(f"/historical-price-full/{sym}", "history", **params)
        history = FmpHistoricalResponse.model_validate(payload).historical
        if not history:
            raise ValueError(f"Historical data for '{sym}' not found")
        return [
            HistoryBar(
                date=datetime.combine(bar.day, datetime.min.time()),
                close=bar.close,
                volume=bar.volume,
            )
            for bar in sorted(history, key=lambda b: b.day)
        ]

    async def search(self, term: str, limit: int = 20) -> list[FmpSearchItem]:
        """Free-text search; returns raw rows, exchange filtering is up to the caller."""
        params = FmpSearchParams(query=term, limit=limit).model_dump()
        data = await self._get_json("/search", "search", **params)
        return FMP_SEARCH_ITEMS.validate_python(data or [])

    async def get_news(self, symbol: str, limit: int = 10) -> list[NewsArticle]:
        """Fetch the latest news for a symbol; an empty feed yields []."""
        sym = normalize_stock_symbol(symbol)
        params = FmpNewsParams(tickers=sym, limit=limit).model_dump()
        data = await self._get_json("/stock_news", "news", **params)
        items = FMP_NEWS_ITEMS.validate_python(data or [])
        return [
            NewsArticle(
                symbol=item.symbol,
                title=item.title,
                published_at=item.published_date,
                site=item.site,
                url=item.url,
                text=item.text,
                image=item.image,
            )
            for item in items
        ]

    async def get_index_quotes(self, *, admitted: bool = False) -> list[StockQuote]:
        data = await self._get_json("/quotes/index", "overview", admitted=admitted)
        return [self._quote_from_row(row) for row in FMP_QUOTES.validate_python(data or [])]

    async def get_sector_performance(self, *, admitted: bool = False) -> list[SectorPerformance]:
        data = await self._get_json("/stock/sectors-performance", "overview", admitted=admitted)
        return [
            SectorPerformance(sector=row.sector, change=round2(row.changes_percentage))
            for row in FMP_SECTORS.validate_python(data or [])
        ]

    def _quote_from_row(self, row: FmpQuote) -> StockQuote:
        """Build a StockQuote from a /quote row."""
        return StockQuote(
            symbol=row.symbol,
            name=row.name,
            price=row.price,
            change=round2(row.changes_percentage),
            volume=row.volume,
            market_cap=row.market_cap,
            pe=row.pe,
            eps=row.eps,
        )
