"""CoinGecko market data provider for cryptocurrencies."""
from datetime import datetime

from market_gateway.providers.core import round2
from market_gateway.providers.core.utils import (normalize_crypto_id,
                                                 parse_timestamp)
from market_gateway.providers.crypto.coingecko.models import (
    CoinGeckoMarketChart, CoinGeckoMarketChartParams, CoinGeckoPriceRow,
    CoinGeckoSimplePriceParams)
from market_gateway.providers.crypto.crypto_provider_abc import \
    CryptoProviderABC
from market_gateway.schemas import CryptoPrice, HistoryBar

# Above this many days the chart is requested with daily granularity.
DAILY_INTERVAL_AFTER_DAYS = 90


class CoinGeckoProvider(CryptoProviderABC):
    """Market data provider for cryptocurrencies via CoinGecko API.

    Uses CoinGecko IDs as symbols (e.g., "bitcoin", "ethereum", "solana").
    See https://api.coingecko.com/api/v3/coins/list for all available IDs.
    Short tickers are resolved by the service layer before reaching here.

    With an API key the transport targets the Pro endpoint and sends the
    ``x-cg-pro-api-key`` header (see ``pro_headers``).
    """

    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    @classmethod
    def base_url_for(cls, api_key: str | None, base_url: str | None = None) -> str:
        """Pick the endpoint: explicit override, Pro when keyed, public otherwise."""
        if base_url:
            return base_url
        return cls.PRO_BASE_URL if api_key else cls.BASE_URL

    @staticmethod
    def pro_headers(api_key: str | None) -> dict[str, str]:
        return {"x-cg-pro-api-key": api_key} if api_key else {}

    async def get_price(self, coin_id: str) -> CryptoPrice:
        """Fetch the current quote for a cryptocurrency.

        Args:
            coin_id: CoinGecko ID (e.g., "bitcoin", "ethereum").

        Returns:
            CryptoPrice with USD price, 24h change/volume and market cap.
        """
        coin = normalize_crypto_id(coin_id)
        params = CoinGeckoSimplePriceParams().model_dump() | {"ids": coin}
        data = await self._get_json("/simple/price", "crypto", **params)

        if not data or not data.get(coin):
            raise ValueError(f"Coin '{coin}' not found")

        row = CoinGeckoPriceRow.model_validate(data[coin])
        return CryptoPrice(
            id=coin,
            price=row.usd,
            change=round2(row.usd_24h_change),
            volume=row.usd_24h_vol,
            market_cap=row.usd_market_cap,
            last_updated=parse_timestamp(row.last_updated_at),
        )

    async def get_history(self, symbol: str, days: int) -> list[HistoryBar]:
        """Fetch historical price data for a cryptocurrency.

        Args:
            symbol: CoinGecko ID (e.g., "bitcoin", "ethereum").
            days: Number of days back from now.

        Returns:
            List of HistoryBars ordered by timestamp.
        """
        coin = normalize_crypto_id(symbol)
        params = CoinGeckoMarketChartParams(
            days=days,
            interval="daily" if days > DAILY_INTERVAL_AFTER_DAYS else None,
        ).model_dump(exclude_none=True)
        payload = await self._get_json(f"/coins/{coin}/market_chart", "history", **params)
        chart = CoinGeckoMarketChart.model_validate(payload)
        if not chart.prices:
            raise ValueError(f"Historical data for '{coin}' not found")

        volume_by_ts = {int(v[0]): v[1] for v in chart.total_volumes if len(v) >= 2}
        bars = [
            HistoryBar(
                date=datetime.fromtimestamp(ts_ms / 1000),
                close=float(price),
                volume=volume_by_ts.get(int(ts_ms)),
            )
            for (ts_ms, price) in (p[:2] for p in chart.prices)
        ]
        bars.sort(key=lambda bar: bar.date)
        return bars
