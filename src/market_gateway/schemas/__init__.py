"""Pydantic records returned by the gateway. Never persisted by the core."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class InstrumentKind(str, Enum):
    """Kind of tracked instrument; also the document-store array it lives in."""

    STOCK = "stock"
    CRYPTO = "crypto"


class StockQuote(BaseModel):
    """Current quote for an equity."""

    symbol: str
    name: str | None = None
    price: float
    change: float | None = None  # percent change on the day
    volume: float | None = None
    market_cap: float | None = None
    pe: float | None = None
    eps: float | None = None


class HistoryBar(BaseModel):
    """One point of a price series."""

    date: datetime
    close: float
    volume: float | None = None


class SearchResult(BaseModel):
    """Search hit for a listed security."""

    symbol: str
    name: str | None = None
    exchange: str = "Unknown"


class SymbolDetail(StockQuote):
    """Quote combined with the company profile."""

    exchange: str = "Unknown"
    industry: str = "Unknown"
    sector: str = "Unknown"
    description: str | None = None
    website: str | None = None


class NewsArticle(BaseModel):
    symbol: str | None = None
    title: str
    published_at: datetime | None = None
    site: str | None = None
    url: str | None = None
    text: str | None = None
    image: str | None = None


class SectorPerformance(BaseModel):
    sector: str
    change: float | None = None  # percent change on the day


class MarketOverview(BaseModel):
    """Major index quotes and per-sector performance."""

    indexes: list[StockQuote] = Field(default_factory=list)
    sectors: list[SectorPerformance] = Field(default_factory=list)


class CryptoPrice(BaseModel):
    """Current USD price for a coin (canonical provider id)."""

    id: str
    price: float
    change: float | None = None  # 24h percent change
    volume: float | None = None  # 24h volume
    market_cap: float | None = None
    last_updated: datetime | None = None


class TrackedInstrument(BaseModel):
    """Stock or crypto item in a user's watchlist."""

    id: str
    symbol: str
    name: str
    kind: InstrumentKind = InstrumentKind.STOCK
    price: float | None = None
    change: float | None = None
    volume: float | None = None
    market_cap: float | None = None
    pe: float | None = None


class QuotaSnapshot(BaseModel):
    """Read-only view of a provider's daily quota state."""

    provider: str
    counts: dict[str, int] = Field(default_factory=dict)
    total: int = 0
    daily_limit: int
    remaining: int
    window_start: datetime
    exhausted: bool = False
    exhausted_at: datetime | None = None
    cooldown_remaining_seconds: float = 0.0
    resumes_at: datetime | None = None


class CacheSnapshot(BaseModel):
    """Entry counts and hit ratio of the response cache."""

    sizes: dict[str, int] = Field(default_factory=dict)
    max_entries: int
    hits: int = 0
    misses: int = 0


class UsageSnapshot(BaseModel):
    """Everything an in-app usage indicator needs."""

    providers: dict[str, QuotaSnapshot] = Field(default_factory=dict)
    cache: CacheSnapshot


class RefreshFailure(BaseModel):
    """One instrument that could not be refreshed."""

    id: str
    kind: str
    message: str


class RefreshSummary(BaseModel):
    """Outcome of refreshing a whole watchlist."""

    updated: list[str] = Field(default_factory=list)
    failures: list[RefreshFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class ComparisonPoint(BaseModel):
    date: datetime
    value: float


class ComparisonSeries(BaseModel):
    """One symbol's series in a stock comparison."""

    symbol: str
    points: list[ComparisonPoint] = Field(default_factory=list)
    quote: StockQuote | None = None


__all__ = [
    "CacheSnapshot",
    "ComparisonPoint",
    "ComparisonSeries",
    "CryptoPrice",
    "HistoryBar",
    "InstrumentKind",
    "MarketOverview",
    "NewsArticle",
    "QuotaSnapshot",
    "RefreshFailure",
    "RefreshSummary",
    "SearchResult",
    "SectorPerformance",
    "StockQuote",
    "SymbolDetail",
    "TrackedInstrument",
    "UsageSnapshot",
]
