"""Service layer: cache-first lookups, watchlists, comparison and usage."""
from market_gateway.services.compare import ComparisonMetric, ComparisonService
from market_gateway.services.crypto import CryptoLookupService
from market_gateway.services.lookup_service import LookupService
from market_gateway.services.securities import SecurityLookupService
from market_gateway.services.usage import UsageService
from market_gateway.services.watchlist import (Watchlist, WatchlistService,
                                               WatchlistStore)

__all__ = [
    "ComparisonMetric",
    "ComparisonService",
    "CryptoLookupService",
    "LookupService",
    "SecurityLookupService",
    "UsageService",
    "Watchlist",
    "WatchlistService",
    "WatchlistStore",
]
