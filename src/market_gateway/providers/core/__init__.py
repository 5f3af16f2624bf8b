"""Core provider abstractions: cache, quota, transport and error taxonomy."""
from market_gateway.providers.core.cache import CacheCategory, ResponseCache
from market_gateway.providers.core.error_mapper import ProviderErrorMapper
from market_gateway.providers.core.exceptions import (GatewayError,
                                                      NetworkError, NotFound,
                                                      QuotaExceeded,
                                                      RateLimited,
                                                      RequestRejected,
                                                      UnsupportedExchange,
                                                      UpstreamUnavailable)
from market_gateway.providers.core.market_provider_abc import MarketProviderABC
from market_gateway.providers.core.quota import QuotaTracker
from market_gateway.providers.core.transport import (ApiRequest, RetryEvent,
                                                     RetryingTransport)
from market_gateway.providers.core.utils import round2

__all__ = [
    "ApiRequest",
    "CacheCategory",
    "GatewayError",
    "MarketProviderABC",
    "NetworkError",
    "NotFound",
    "ProviderErrorMapper",
    "QuotaExceeded",
    "QuotaTracker",
    "RateLimited",
    "RequestRejected",
    "ResponseCache",
    "RetryEvent",
    "RetryingTransport",
    "UnsupportedExchange",
    "UpstreamUnavailable",
    "round2",
]
