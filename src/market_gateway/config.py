"""Gateway settings, read from the environment once at startup."""
import os
from datetime import timedelta

from pydantic import BaseModel

from market_gateway.providers.crypto import CoinGeckoProvider
from market_gateway.providers.stocks import FmpProvider


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """API keys, endpoints and the knobs of the quota/retry/cache policy."""

    fmp_api_key: str | None = None
    fmp_base_url: str = FmpProvider.BASE_URL
    coingecko_api_key: str | None = None
    coingecko_base_url: str | None = None  # None: public, or Pro when keyed

    fmp_daily_soft_limit: int = 495
    # Demo plan allows ~10k calls/month
    coingecko_daily_soft_limit: int = 300
    cooldown_minutes: float = 30

    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    http_timeout_seconds: float = 10.0

    cache_max_entries: int = 100
    dedupe_in_flight: bool = True

    @property
    def cooldown(self) -> timedelta:
        return timedelta(minutes=self.cooldown_minutes)

    @property
    def coingecko_url(self) -> str:
        return CoinGeckoProvider.base_url_for(self.coingecko_api_key, self.coingecko_base_url)

    @property
    def fmp_params(self) -> dict[str, str]:
        return {"apikey": self.fmp_api_key} if self.fmp_api_key else {}

    @property
    def coingecko_headers(self) -> dict[str, str]:
        return CoinGeckoProvider.pro_headers(self.coingecko_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from FMP_*, COINGECKO_* and MARKET_GATEWAY_* variables."""
        defaults = cls()
        return cls(
            fmp_api_key=os.getenv("FMP_API_KEY"),
            fmp_base_url=os.getenv("FMP_BASE_URL") or defaults.fmp_base_url,
            coingecko_api_key=os.getenv("COINGECKO_API_KEY"),
            coingecko_base_url=os.getenv("COINGECKO_BASE_URL"),
            fmp_daily_soft_limit=_env_int(
                "MARKET_GATEWAY_FMP_DAILY_LIMIT", defaults.fmp_daily_soft_limit
            ),
            coingecko_daily_soft_limit=_env_int(
                "MARKET_GATEWAY_COINGECKO_DAILY_LIMIT", defaults.coingecko_daily_soft_limit
            ),
            cooldown_minutes=_env_float(
                "MARKET_GATEWAY_COOLDOWN_MINUTES", defaults.cooldown_minutes
            ),
            max_retries=_env_int("MARKET_GATEWAY_MAX_RETRIES", defaults.max_retries),
            retry_delay_seconds=_env_float(
                "MARKET_GATEWAY_RETRY_DELAY", defaults.retry_delay_seconds
            ),
            http_timeout_seconds=_env_float(
                "MARKET_GATEWAY_HTTP_TIMEOUT", defaults.http_timeout_seconds
            ),
            cache_max_entries=_env_int(
                "MARKET_GATEWAY_CACHE_MAX_ENTRIES", defaults.cache_max_entries
            ),
            dedupe_in_flight=_env_bool(
                "MARKET_GATEWAY_DEDUPE_IN_FLIGHT", defaults.dedupe_in_flight
            ),
        )
