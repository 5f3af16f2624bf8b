"""Response schemas and request params for the Financial Modeling Prep API."""
from datetime import date, datetime

from pydantic import (BaseModel, ConfigDict, Field, TypeAdapter,
                      field_validator)


class FmpModel(BaseModel):
    """Base for FMP payloads: camelCase aliases, unknown fields ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FmpQuote(FmpModel):
    """Row of /quote/{symbol}."""

    symbol: str
    name: str | None = None
    price: float
    changes_percentage: float | None = Field(default=None, alias="changesPercentage")
    volume: float | None = None
    market_cap: float | None = Field(default=None, alias="marketCap")
    pe: float | None = None
    eps: float | None = None
    exchange: str | None = None


class FmpProfile(FmpModel):
    """Row of /profile/{symbol}."""

    symbol: str | None = None
    company_name: str | None = Field(default=None, alias="companyName")
    exchange_short_name: str | None = Field(default=None, alias="exchangeShortName")
    industry: str | None = None
    sector: str | None = None
    description: str | None = None
    website: str | None = None


class FmpSearchItem(FmpModel):
    """Row of /search."""

    symbol: str
    name: str | None = None
    exchange_short_name: str | None = Field(default=None, alias="exchangeShortName")
    stock_exchange: str | None = Field(default=None, alias="stockExchange")


class FmpHistoricalBar(FmpModel):
    day: date = Field(alias="date")
    close: float
    volume: float | None = None


class FmpHistoricalResponse(FmpModel):
    """Body of /historical-price-full/{symbol}."""

    symbol: str | None = None
    historical: list[FmpHistoricalBar] = Field(default_factory=list)


class FmpNewsItem(FmpModel):
    """Row of /stock_news."""

    symbol: str | None = None
    published_date: datetime | None = Field(default=None, alias="publishedDate")
    title: str
    site: str | None = None
    text: str | None = None
    url: str | None = None
    image: str | None = None


class FmpSectorPerformance(FmpModel):
    """Row of /stock/sectors-performance; the change arrives as "0.55384%"."""

    sector: str
    changes_percentage: float | None = Field(default=None, alias="changesPercentage")

    @field_validator("changes_percentage", mode="before")
    @classmethod
    def _strip_percent(cls, value):
        if isinstance(value, str):
            return value.strip().rstrip("%") or None
        return value


class FmpHistoryParams(BaseModel):
    """Params for /historical-price-full/{symbol} (get_history)."""

    timeseries: int


class FmpSearchParams(BaseModel):
    """Params for /search."""

    query: str
    limit: int = 20


class FmpNewsParams(BaseModel):
    """Params for /stock_news."""

    tickers: str
    limit: int = 10


FMP_QUOTES = TypeAdapter(list[FmpQuote])
FMP_PROFILES = TypeAdapter(list[FmpProfile])
FMP_SEARCH_ITEMS = TypeAdapter(list[FmpSearchItem])
FMP_NEWS_ITEMS = TypeAdapter(list[FmpNewsItem])
FMP_SECTORS = TypeAdapter(list[FmpSectorPerformance])
