"""Securities lookups: quote, history, name search, symbol detail, news and market overview."""
import asyncio
import logging

from market_gateway.providers.core import (CacheCategory, ProviderErrorMapper,
                                           ResponseCache, UnsupportedExchange)
from market_gateway.providers.core.utils import normalize_stock_symbol
from market_gateway.providers.stocks import StocksProviderABC
from market_gateway.providers.stocks.fmp.models import FmpSearchItem
from market_gateway.schemas import (HistoryBar, MarketOverview,
                                    NewsArticle, SearchResult, StockQuote,
                                    SymbolDetail)
from market_gateway.services.lookup_service import LookupService
from market_gateway.services.utils import InFlightRequests

logger = logging.getLogger(__name__)

QUOTE_TTL_MINUTES = 5
HISTORY_TTL_MINUTES = 60
SEARCH_TTL_MINUTES = 24 * 60
SYMBOL_TTL_MINUTES = 60

MIN_SEARCH_LENGTH = 3
SEARCH_LIMIT = 20
NEWS_LIMIT = 10

# Exchanges covered by the free tier.
SUPPORTED_EXCHANGES = ("NYSE", "NASDAQ", "AMEX")

# Symbol suffix -> exchange it denotes; rejected before any network call.
UNSUPPORTED_SUFFIXES: dict[str, str] = {
    ".L": "London Stock Exchange (LSE)",
    ".KS": "Korean Stock Exchange",
    ".KQ": "Korean Stock Exchange",
    ".T": "Tokyo Stock Exchange",
    ".SS": "Chinese stock exchange",
    ".SZ": "Chinese stock exchange",
    ".F": "German stock exchange",
    ".DE": "German stock exchange",
}


def unsupported_exchange(symbol: str) -> str | None:
    """Return the exchange name when symbol carries an unsupported suffix."""
    sym = normalize_stock_symbol(symbol)
    for suffix, exchange in UNSUPPORTED_SUFFIXES.items():
        if sym.endswith(suffix):
            return exchange
    return None


def _on_supported_exchange(item: FmpSearchItem) -> bool:
    names = ((item.exchange_short_name or "").upper(), (item.stock_exchange or "").upper())
    return any(ex in name for ex in SUPPORTED_EXCHANGES for name in names)


def rank_search_results(results: list[SearchResult], term: str) -> list[SearchResult]:
    """Exact symbol match first, then symbol prefix matches, then the rest; ties by symbol."""
    needle = term.strip().upper()

    def rank(result: SearchResult) -> tuple[int, str]:
        sym = result.symbol.upper()
        if sym == needle:
            return (0, sym)
        if sym.startswith(needle):
            return (1, sym)
        return (2, sym)

    return sorted(results, key=rank)


class SecurityLookupService(LookupService):
    """Cached, quota-aware equity lookups over a StocksProviderABC."""

    def __init__(
        self,
        provider: StocksProviderABC,
        cache: ResponseCache,
        error_mapper: ProviderErrorMapper | None = None,
        *,
        in_flight: InFlightRequests | None = None,
    ) -> None:
        super().__init__(
            provider,
            cache,
            error_mapper or ProviderErrorMapper(resource_name="Stock", api_name="FMP"),
            in_flight=in_flight,
        )
        self._stocks = provider

    async def quote(self, symbol: str) -> StockQuote:
        """Current quote, cached for 5 minutes."""
        sym = normalize_stock_symbol(symbol)
        return await self._cached(
            CacheCategory.QUOTE,
            sym,
            QUOTE_TTL_MINUTES,
            lambda: self._stocks.get_quote(sym),
            symbol=sym,
        )

    async def history(self, symbol: str, timeframe_days: int) -> list[HistoryBar]:
        """Daily closes for the last ``timeframe_days`` sessions, oldest first; cached 60 minutes."""
        sym = normalize_stock_symbol(symbol)
        return await self._cached(
            CacheCategory.HISTORY,
            f"{sym}-{timeframe_days}",
            HISTORY_TTL_MINUTES,
            lambda: self._stocks.get_history(sym, timeframe_days),
            symbol=sym,
        )

    async def search_by_name(self, term: str) -> list[SearchResult]:
        """Search listed securities on supported exchanges; cached 24 hours.

        Terms shorter than 3 characters return [] without touching the network.
        """
        query = term.strip()
        if len(query) < MIN_SEARCH_LENGTH:
            return []

        async def fetch() -> list[SearchResult]:
            items = await self._stocks.search(query, limit=SEARCH_LIMIT)
            if not items:
                raise ValueError(f"No results found for '{query}'")
            results = [
                SearchResult(
                    symbol=item.symbol,
                    name=item.name,
                    exchange=item.exchange_short_name or item.stock_exchange or "Unknown",
                )
                for item in items
                if _on_supported_exchange(item)
            ]
            return rank_search_results(results, query)

        return await self._cached(
            CacheCategory.SEARCH, query.lower(), SEARCH_TTL_MINUTES, fetch, symbol=query
        )

    async def search_by_symbol(self, symbol: str) -> SymbolDetail:
        """Quote plus company profile; cached 60 minutes.

        Raises:
            UnsupportedExchange: symbol has a suffix of an exchange outside the
                free tier (e.g. "7203.T"); no request is made.
        """
        sym = normalize_stock_symbol(symbol)
        exchange = unsupported_exchange(sym)
        if exchange is not None:
            raise UnsupportedExchange(sym, exchange)

        async def fetch() -> SymbolDetail:
            # One quota unit for the pair; a refusal sends neither request.
            self._stocks.admit("symbol")
            quote, profile = await asyncio.gather(
                self._stocks.get_quote(sym, category="symbol", admitted=True),
                self._stocks.get_profile(sym, admitted=True),
            )
            return SymbolDetail(
                **quote.model_dump(),
                exchange=profile.exchange_short_name or "Unknown",
                industry=profile.industry or "Unknown",
                sector=profile.sector or "Unknown",
                description=profile.description,
                website=profile.website,
            )

        return await self._cached(
            CacheCategory.SYMBOL, sym, SYMBOL_TTL_MINUTES, fetch, symbol=sym
        )

    async def news(self, symbol: str, limit: int = NEWS_LIMIT) -> list[NewsArticle]:
        """Latest articles for symbol. Not cached; every call costs one quota unit."""
        sym = normalize_stock_symbol(symbol)
        return await self._fetch(lambda: self._stocks.get_news(sym, limit), symbol=sym)

    async def market_overview(self) -> MarketOverview:
        """Major index quotes plus sector performance, fetched together. Not cached."""

        async def fetch() -> MarketOverview:
            self._stocks.admit("overview")
            indexes, sectors = await asyncio.gather(
                self._stocks.get_index_quotes(admitted=True),
                self._stocks.get_sector_performance(admitted=True),
            )
            return MarketOverview(indexes=indexes, sectors=sectors)

        return await self._fetch(fetch)
