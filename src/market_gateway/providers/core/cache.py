"""In-memory, per-category response cache with read-time expiry."""
import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from market_gateway.providers.core.protocols import Clock
from market_gateway.schemas import CacheSnapshot

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100


class CacheCategory(str, Enum):
    """Request classes, each with its own namespace and TTL."""

    SEARCH = "search"
    SYMBOL = "symbol"
    QUOTE = "quote"
    HISTORY = "history"
    CRYPTO = "crypto"


@dataclass
class CacheEntry:
    key: str
    category: CacheCategory
    value: Any
    stored_at: datetime


class ResponseCache:
    """Bounded key -> value store, one namespace per CacheCategory.

    Entries have no TTL of their own: callers pass the TTL on ``get`` so that
    one category can hold values with different lifetimes (e.g. crypto prices
    and crypto history). Expired entries are evicted lazily on read; when a
    category grows past ``max_entries`` the oldest entries are pruned.

    Values are copied in and out, so callers mutating a result never alter
    what later readers get.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES, clock: Clock = datetime.now) -> None:
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[CacheCategory, dict[str, CacheEntry]] = {
            category: {} for category in CacheCategory
        }
        self._hits = 0
        self._misses = 0

    def get(self, category: CacheCategory, key: str, ttl_minutes: float) -> Any | None:
        """Return the cached value, or None if absent or older than ttl_minutes."""
        namespace = self._entries[CacheCategory(category)]
        entry = namespace.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock() - entry.stored_at > timedelta(minutes=ttl_minutes):
            del namespace[key]
            self._misses += 1
            return None
        self._hits += 1
        logger.debug("Cache hit for %s: %s", entry.category.value, key)
        return copy.deepcopy(entry.value)

    def set(self, category: CacheCategory, key: str, value: Any) -> None:
        """Store value under key, overwriting, then prune the category to its cap."""
        category = CacheCategory(category)
        namespace = self._entries[category]
        namespace.pop(key, None)
        namespace[key] = CacheEntry(
            key=key, category=category, value=copy.deepcopy(value), stored_at=self._clock()
        )
        self._prune(namespace)

    def _prune(self, namespace: dict[str, CacheEntry]) -> None:
        overflow = len(namespace) - self._max_entries
        if overflow <= 0:
            return
        oldest = sorted(namespace.values(), key=lambda e: e.stored_at)[:overflow]
        for entry in oldest:
            del namespace[entry.key]

    def size(self, category: CacheCategory) -> int:
        return len(self._entries[CacheCategory(category)])

    def clear(self, category: CacheCategory | None = None) -> None:
        """Drop every entry, or only the given category."""
        if category is None:
            for namespace in self._entries.values():
                namespace.clear()
        else:
            self._entries[CacheCategory(category)].clear()

    def stats(self) -> CacheSnapshot:
        return CacheSnapshot(
            sizes={c.value: len(ns) for c, ns in self._entries.items()},
            max_entries=self._max_entries,
            hits=self._hits,
            misses=self._misses,
        )
