"""Time-bounded cache for external search results."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from food_search.config import validate_cache_ttl
from food_search.domain.foods import FoodRecord
from food_search.domain.search import CacheEntry, normalize_query


class SearchCache(Protocol):
    """Cache interface keyed by normalized query text."""

    def get(self, query: str) -> list[FoodRecord] | None:
        """Return cached results if present and not expired."""

    def put(self, query: str, results: list[FoodRecord]) -> None:
        """Store results for a query using the cache TTL."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class InMemorySearchCache(SearchCache):
    """In-memory result cache with lazy expiry."""

    ttl_seconds: int = 300
    clock: Callable[[], datetime] = _utcnow
    _entries: dict[str, CacheEntry] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        validate_cache_ttl(self.ttl_seconds)

    def get(self, query: str) -> list[FoodRecord] | None:
        """Return cached results if the entry hasn't expired."""
        key = normalize_query(query)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_valid(self.clock()):
            self._entries.pop(key, None)
            return None
        return list(entry.results)

    def put(self, query: str, results: list[FoodRecord]) -> None:
        """Store results and drop any entries that have already expired."""
        now = self.clock()
        self.sweep(now)
        key = normalize_query(query)
        self._entries[key] = CacheEntry(
            query=key,
            results=list(results),
            timestamp=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )

    def sweep(self, now: datetime | None = None) -> int:
        """Evict expired entries and return how many were removed."""
        current = now or self.clock()
        expired = [
            key for key, entry in self._entries.items() if not entry.is_valid(current)
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
