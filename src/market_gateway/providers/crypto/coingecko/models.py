"""Models for CoinGecko provider (API params and response rows)."""
from pydantic import BaseModel, ConfigDict, Field


class CoinGeckoSimplePriceParams(BaseModel):
    """Params for /simple/price (get_price). Merge with 'ids' at call site."""

    vs_currencies: str = "usd"
    include_market_cap: str = "true"
    include_24hr_vol: str = "true"
    include_24hr_change: str = "true"
    include_last_updated_at: str = "true"


class CoinGeckoMarketChartParams(BaseModel):
    """Params for /coins/{id}/market_chart (get_history)."""

    vs_currency: str = "usd"
    days: int
    interval: str | None = None


class CoinGeckoPriceRow(BaseModel):
    """Per-coin row of a /simple/price response."""

    model_config = ConfigDict(extra="ignore")

    usd: float
    usd_24h_change: float | None = None
    usd_24h_vol: float | None = None
    usd_market_cap: float | None = None
    last_updated_at: float | None = None


class CoinGeckoMarketChart(BaseModel):
    """Body of /coins/{id}/market_chart: [[timestamp_ms, value], ...] series."""

    model_config = ConfigDict(extra="ignore")

    prices: list[list[float]] = Field(default_factory=list)
    total_volumes: list[list[float]] = Field(default_factory=list)
    market_caps: list[list[float]] = Field(default_factory=list)
