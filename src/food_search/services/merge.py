"""Merge local and external candidates without duplicates."""

from collections.abc import Iterable

from food_search.domain.foods import FoodRecord


def merge_and_deduplicate(
    local: Iterable[FoodRecord],
    external: Iterable[FoodRecord],
    limit: int,
) -> list[FoodRecord]:
    """Combine candidates, local first, keeping the first record per identity."""
    merged: list[FoodRecord] = []
    seen: set[str] = set()
    for batch in (local, external):
        for record in batch:
            if len(merged) >= limit:
                return merged
            key = record.dedup_key
            if key in seen:
                continue
            seen.add(key)
            merged.append(record)
    return merged
