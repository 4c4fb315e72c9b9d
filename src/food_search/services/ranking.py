"""Textual relevance ranking applied to merged search results."""

from food_search.domain.foods import FoodRecord
from food_search.domain.search import normalize_query

EXACT_TIER = 4
PREFIX_TIER = 3
CONTAINS_TIER = 2
BRAND_OR_TAG_TIER = 1
NO_MATCH_TIER = 0


def relevance_tier(record: FoodRecord, query: str) -> int:
    """Score a record against an already-normalized query."""
    name = record.name.strip().lower()
    if name == query:
        return EXACT_TIER
    if name.startswith(query):
        return PREFIX_TIER
    if query in name:
        return CONTAINS_TIER
    if query in (record.brand or "").lower():
        return BRAND_OR_TAG_TIER
    if any(query in tag.lower() for tag in record.tags):
        return BRAND_OR_TAG_TIER
    return NO_MATCH_TIER


def rank_by_relevance(records: list[FoodRecord], query: str) -> list[FoodRecord]:
    """Order by tier, then name alphabetically, ignoring any earlier scores."""
    normalized = normalize_query(query)
    return sorted(
        records,
        key=lambda record: (
            -relevance_tier(record, normalized),
            record.name.casefold(),
            record.name,
        ),
    )
