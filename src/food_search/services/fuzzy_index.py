"""In-memory approximate-match index over local food records."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from fuzzywuzzy import fuzz

from food_search.domain.foods import FoodRecord

NAME_WEIGHT = 1.0
BRAND_WEIGHT = 0.5
TAGS_WEIGHT = 0.3
MIN_QUERY_LENGTH = 2

# Perfect field matches score zero; a floor keeps the weighted product informative.
_SCORE_FLOOR = 0.001

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _IndexedFood:
    record: FoodRecord
    name: str
    brand: str
    tags: tuple[str, ...]


@dataclass(frozen=True)
class FuzzyMatch:
    """A candidate with its internal match score (0 is perfect, 1 is no match)."""

    record: FoodRecord
    score: float


@dataclass
class LocalFuzzyIndex:
    """Weighted fuzzy matching over name, brand and tags."""

    match_threshold: float = 0.4
    accept_threshold: float = 0.5
    min_query_length: int = MIN_QUERY_LENGTH
    _entries: list[_IndexedFood] = field(default_factory=list, init=False)
    _built_count: int | None = field(default=None, init=False)

    @property
    def size(self) -> int:
        """Number of records that made it into the index."""
        return len(self._entries)

    def is_stale(self, record_count: int) -> bool:
        """Return True if the record count differs from the last build."""
        return self._built_count is None or self._built_count != record_count

    def build(self, records: Sequence[FoodRecord]) -> bool:
        """Rebuild from a record snapshot; skipped when the count is unchanged."""
        if not self.is_stale(len(records)):
            return False
        entries: list[_IndexedFood] = []
        for record in records:
            try:
                entries.append(_index_record(record))
            except (AttributeError, TypeError, ValueError) as exc:
                _logger.warning("Skipping food record during indexing: %s", exc)
        self._entries = entries
        self._built_count = len(records)
        _logger.debug(
            "Fuzzy index built with %s of %s records", len(entries), len(records)
        )
        return True

    def search(self, query: str, limit: int) -> list[FuzzyMatch]:
        """Return accepted candidates ordered by ascending match score."""
        pattern = query.strip().lower()
        if len(pattern) < self.min_query_length or limit <= 0:
            return []
        matches: list[FuzzyMatch] = []
        for entry in self._entries:
            score = self._score(pattern, entry)
            if score is not None and score < self.accept_threshold:
                matches.append(FuzzyMatch(record=entry.record, score=score))
        matches.sort(key=lambda match: match.score)
        return matches[:limit]

    def fallback_search(self, query: str, limit: int) -> list[FoodRecord]:
        """Plain case-insensitive starts-with then contains scan."""
        pattern = query.strip().lower()
        if not pattern or limit <= 0:
            return []
        scored: list[tuple[int, FoodRecord]] = []
        for entry in self._entries:
            score = _substring_score(pattern, entry)
            if score > 0:
                scored.append((score, entry.record))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [record for _, record in scored[:limit]]

    def _score(self, pattern: str, entry: _IndexedFood) -> float | None:
        """Weighted geometric combination of the fields that matched."""
        total_weight = NAME_WEIGHT + BRAND_WEIGHT + TAGS_WEIGHT
        tag_score = min(
            (_field_score(pattern, tag) for tag in entry.tags), default=None
        )
        fields = (
            (_field_score(pattern, entry.name), NAME_WEIGHT),
            (_field_score(pattern, entry.brand), BRAND_WEIGHT),
            (tag_score, TAGS_WEIGHT),
        )
        combined = 1.0
        matched = False
        for score, weight in fields:
            if score is None or score > self.match_threshold:
                continue
            matched = True
            combined *= max(score, _SCORE_FLOOR) ** (weight / total_weight)
        return combined if matched else None


def _index_record(record: FoodRecord) -> _IndexedFood:
    name = record.name.strip().lower()
    if not name:
        raise ValueError("record has an empty name")
    return _IndexedFood(
        record=record,
        name=name,
        brand=(record.brand or "").strip().lower(),
        tags=tuple(tag.lower() for tag in record.tags or ()),
    )


def _field_score(pattern: str, text: str) -> float | None:
    """Return 1 - similarity for the best-aligned substring, None for empty text."""
    if not text:
        return None
    return 1.0 - fuzz.partial_ratio(pattern, text) / 100.0


def _substring_score(pattern: str, entry: _IndexedFood) -> int:
    if entry.name == pattern:
        return 100
    if entry.name.startswith(pattern):
        return 80
    if pattern in entry.name:
        return 60
    if pattern in entry.brand:
        return 30
    if any(pattern in tag for tag in entry.tags):
        return 20
    return 0
