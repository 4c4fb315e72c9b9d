"""Domain models for search requests, results and cache entries."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from food_search.domain.foods import FoodRecord


class QualityTier(Enum):
    """Coarse label for how many relevant results a search produced."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class SearchMethod(Enum):
    """Strategy that produced the returned results."""

    FUZZY = "Fuzzy"
    FALLBACK = "Fallback"
    EXTERNAL = "External"
    CACHED = "Cached"
    HYBRID = "Hybrid"


class ExternalOrigin(Enum):
    """How external candidates were obtained for a search."""

    NONE = "none"
    CACHED = "cached"
    LIVE = "live"


class SearchState(Enum):
    """Orchestrator states, in the order a full search visits them."""

    IDLE = "idle"
    LOCAL_SEARCH = "local_search"
    CACHE_CHECK = "cache_check"
    EXTERNAL_FETCH = "external_fetch"
    MERGE_RANK = "merge_rank"
    CLASSIFY = "classify"
    DONE = "done"


@dataclass(frozen=True)
class SearchOptions:
    """Caller-supplied knobs for a single search."""

    limit: int | None = None
    include_external: bool = True
    max_wait_ms: int | None = None
    use_cache: bool = True
    include_ai: bool = False


@dataclass(frozen=True)
class SearchQuality:
    """Quality signal attached to every search response."""

    quality: QualityTier
    method: SearchMethod
    total_found: int
    quality_kept: int


@dataclass(frozen=True)
class SearchResponse:
    """Ranked results plus quality metadata."""

    results: list[FoodRecord]
    quality: SearchQuality
    ai_suggestions: list[str] | None = None


@dataclass(frozen=True)
class LocalMatches:
    """Candidates produced by the local index and the pass that found them."""

    records: list[FoodRecord]
    method: SearchMethod


@dataclass(frozen=True)
class CacheEntry:
    """External results stored for a normalized query."""

    query: str
    results: list[FoodRecord] = field(default_factory=list)
    timestamp: datetime | None = None
    expires_at: datetime | None = None

    def is_valid(self, now: datetime) -> bool:
        """Return True while the entry has not expired."""
        return self.expires_at is not None and now < self.expires_at


def normalize_query(query: str) -> str:
    """Trim and lower-case a query for cache keys and comparisons."""
    return query.strip().lower()
