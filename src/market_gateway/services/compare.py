"""Side-by-side comparison of up to three stocks over a timeframe."""
from enum import Enum

from market_gateway.providers.core.utils import normalize_stock_symbol, round2
from market_gateway.schemas import (ComparisonPoint, ComparisonSeries,
                                    HistoryBar)
from market_gateway.services.securities import SecurityLookupService

MAX_COMPARED = 3


class ComparisonMetric(str, Enum):
    PRICE = "price"
    PERCENT_CHANGE = "percent_change"
    VOLUME = "volume"


def _points(bars: list[HistoryBar], metric: ComparisonMetric) -> list[ComparisonPoint]:
    if metric is ComparisonMetric.VOLUME:
        return [ComparisonPoint(date=b.date, value=b.volume or 0.0) for b in bars]
    if metric is ComparisonMetric.PERCENT_CHANGE:
        base = bars[0].close if bars else 0.0
        if not base:
            return [ComparisonPoint(date=b.date, value=0.0) for b in bars]
        return [
            ComparisonPoint(date=b.date, value=round2((b.close - base) / base * 100))
            for b in bars
        ]
    return [ComparisonPoint(date=b.date, value=b.close) for b in bars]


class ComparisonService:
    """Builds aligned series (price, % change from window start, or volume) for charting."""

    def __init__(self, securities: SecurityLookupService) -> None:
        self._securities = securities

    async def compare(
        self,
        symbols: list[str],
        timeframe_days: int = 30,
        metric: ComparisonMetric | str = ComparisonMetric.PRICE,
    ) -> list[ComparisonSeries]:
        """Fetch history and quote for each symbol, in order.

        Raises:
            ValueError: no symbols, more than three, or an unknown metric.
            GatewayError: any lookup failed.
        """
        metric = ComparisonMetric(metric)
        unique = list(dict.fromkeys(normalize_stock_symbol(s) for s in symbols if s.strip()))
        if not unique:
            raise ValueError("Select at least one stock to compare")
        if len(unique) > MAX_COMPARED:
            raise ValueError(f"At most {MAX_COMPARED} stocks can be compared")

        series = []
        for sym in unique:
            bars = await self._securities.history(sym, timeframe_days)
            quote = await self._securities.quote(sym)
            series.append(ComparisonSeries(symbol=sym, points=_points(bars, metric), quote=quote))
        return series
