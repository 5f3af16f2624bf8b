"""DI container: the composition root. Build once via init_container() at process start."""
from dependency_injector import containers, providers

from market_gateway.config import Settings
from market_gateway.providers import (CoinGeckoProvider, FmpProvider,
                                      QuotaTracker, ResponseCache,
                                      RetryingTransport)
from market_gateway.services import (ComparisonService, CryptoLookupService,
                                     SecurityLookupService, UsageService,
                                     WatchlistService)
from market_gateway.services.utils import InFlightRequests


def _in_flight_map(enabled: bool) -> InFlightRequests | None:
    return InFlightRequests() if enabled else None


class Container(containers.DeclarativeContainer):
    """One cache, one quota tracker per upstream, and the services built on them.

    ``watchlist_store`` is the external document store and must be provided
    by the caller (``container.watchlist_store.override(...)``) before the
    watchlist service is used. ``retry_listener`` may be overridden with a
    callable receiving RetryEvents.
    """

    settings = providers.Singleton(Settings.from_env)
    retry_listener = providers.Object(None)
    watchlist_store = providers.Dependency()

    cache = providers.Singleton(ResponseCache, max_entries=settings.provided.cache_max_entries)
    in_flight = providers.Singleton(_in_flight_map, settings.provided.dedupe_in_flight)

    # Quota trackers (one per upstream)
    fmp_quota = providers.Singleton(
        QuotaTracker,
        "FMP",
        soft_limit=settings.provided.fmp_daily_soft_limit,
        cooldown=settings.provided.cooldown,
    )
    coingecko_quota = providers.Singleton(
        QuotaTracker,
        "CoinGecko",
        soft_limit=settings.provided.coingecko_daily_soft_limit,
        cooldown=settings.provided.cooldown,
    )

    fmp_transport = providers.Singleton(
        RetryingTransport,
        "FMP",
        settings.provided.fmp_base_url,
        fmp_quota,
        params=settings.provided.fmp_params,
        max_retries=settings.provided.max_retries,
        retry_delay=settings.provided.retry_delay_seconds,
        timeout=settings.provided.http_timeout_seconds,
        on_retry=retry_listener,
    )
    coingecko_transport = providers.Singleton(
        RetryingTransport,
        "CoinGecko",
        settings.provided.coingecko_url,
        coingecko_quota,
        headers=settings.provided.coingecko_headers,
        max_retries=settings.provided.max_retries,
        retry_delay=settings.provided.retry_delay_seconds,
        timeout=settings.provided.http_timeout_seconds,
        on_retry=retry_listener,
    )

    stocks_provider = providers.Singleton(FmpProvider, fmp_transport)
    crypto_provider = providers.Singleton(CoinGeckoProvider, coingecko_transport)

    securities = providers.Singleton(
        SecurityLookupService, stocks_provider, cache, in_flight=in_flight
    )
    crypto = providers.Singleton(
        CryptoLookupService, crypto_provider, cache, in_flight=in_flight
    )
    comparison = providers.Singleton(ComparisonService, securities)
    usage = providers.Singleton(
        UsageService,
        providers.List(fmp_quota, coingecko_quota),
        cache,
    )
    watchlists = providers.Singleton(
        WatchlistService, watchlist_store, securities, crypto
    )


def init_container(settings: Settings | None = None) -> Container:
    """Create the container, optionally with explicit settings instead of the environment."""
    container = Container()
    if settings is not None:
        container.settings.override(providers.Object(settings))
    return container


async def close_container(container: Container) -> None:
    """Close the HTTP clients of both providers."""
    await container.stocks_provider().close()
    await container.crypto_provider().close()
