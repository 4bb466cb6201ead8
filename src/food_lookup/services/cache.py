"""Short-lived cache for product search results."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from food_lookup.domain.products import NormalizedProduct

SEARCH_TTL_SECONDS = 5 * 60
MAX_CACHE_ENTRIES = 50


class SearchCache(Protocol):
    """Cache interface for free-text search results."""

    def get(self, query: str) -> list[NormalizedProduct] | None:
        """Return cached results if present and not expired."""

    def set(self, query: str, results: list[NormalizedProduct]) -> None:
        """Store results for a query."""

    def clear(self) -> None:
        """Drop every entry."""


@dataclass(frozen=True)
class _CacheEntry:
    query_key: str
    results: tuple[NormalizedProduct, ...]
    inserted_at: datetime


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def normalize_query_key(query: str) -> str:
    """Return the cache key for a query."""
    return query.strip().lower()


@dataclass
class InMemorySearchCache(SearchCache):
    """In-memory, capacity-bounded TTL cache.

    Eviction is by insertion time, not by access. Methods never suspend, so a
    mutation is never observed half-done by another coroutine.
    """

    ttl_seconds: int = SEARCH_TTL_SECONDS
    max_entries: int = MAX_CACHE_ENTRIES
    clock: Callable[[], datetime] = _utcnow
    _entries: dict[str, _CacheEntry] = field(default_factory=dict, init=False)

    def get(self, query: str) -> list[NormalizedProduct] | None:
        """Return cached results unless the entry has expired."""
        key = normalize_query_key(query)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self.clock()):
            self._entries.pop(key, None)
            return None
        return list(entry.results)

    def set(self, query: str, results: list[NormalizedProduct]) -> None:
        """Store results, evicting the oldest entry when full."""
        key = normalize_query_key(query)
        if key not in self._entries and len(self._entries) >= self.max_entries:
            oldest = min(self._entries.values(), key=lambda item: item.inserted_at)
            del self._entries[oldest.query_key]
        self._entries[key] = _CacheEntry(
            query_key=key,
            results=tuple(results),
            inserted_at=self.clock(),
        )

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def cleanup(self) -> None:
        """Drop every expired entry."""
        now = self.clock()
        expired = [
            key for key, entry in self._entries.items() if self._is_expired(entry, now)
        ]
        for key in expired:
            del self._entries[key]

    def _is_expired(self, entry: _CacheEntry, now: datetime) -> bool:
        return now - entry.inserted_at > timedelta(seconds=self.ttl_seconds)
