"""Usage introspection: quota state per provider plus cache stats."""
from collections.abc import Iterable

from market_gateway.providers.core import QuotaTracker, ResponseCache
from market_gateway.schemas import UsageSnapshot


class UsageService:
    """Aggregates every provider's QuotaTracker and the shared cache for display."""

    def __init__(self, quotas: Iterable[QuotaTracker], cache: ResponseCache) -> None:
        self._quotas = list(quotas)
        self._cache = cache

    def get_usage_snapshot(self) -> UsageSnapshot:
        return UsageSnapshot(
            providers={q.provider_name: q.get_snapshot() for q in self._quotas},
            cache=self._cache.stats(),
        )
