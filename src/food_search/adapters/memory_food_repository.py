"""In-memory implementation of the food record store."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

from food_search.domain.foods import FoodRecord, dedup_key
from food_search.services.search import FoodRepository

_OLDEST = datetime.min.replace(tzinfo=UTC)


@dataclass
class InMemoryFoodRepository(FoodRepository):
    """Dictionary-backed record store for local datasets and tests."""

    foods: dict[str, FoodRecord] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: list[FoodRecord]) -> "InMemoryFoodRepository":
        """Create a store pre-populated with the given records."""
        repository = cls()
        for record in records:
            repository.insert(record)
        return repository

    def count(self) -> int:
        """Return the number of stored records."""
        return len(self.foods)

    def read_all(self) -> list[FoodRecord]:
        """Return every stored record."""
        return list(self.foods.values())

    def insert(self, record: FoodRecord) -> str:
        """Insert a record, or bump the existing one with the same identity."""
        now = datetime.now(tz=UTC)
        existing = self.find_by_name_and_brand(record.name, record.brand)
        if existing is not None and existing.id is not None:
            self.foods[existing.id] = replace(
                record,
                id=existing.id,
                search_count=existing.search_count + 1,
                last_updated=now,
            )
            return existing.id
        food_id = str(uuid4())
        self.foods[food_id] = replace(
            record, id=food_id, search_count=1, last_updated=now
        )
        return food_id

    def find_by_name_and_brand(self, name: str, brand: str | None) -> FoodRecord | None:
        """Return the record with the same (name, brand) identity, if any."""
        key = dedup_key(name, brand)
        for food in self.foods.values():
            if food.dedup_key == key:
                return food
        return None

    def list_popular(self, limit: int) -> list[FoodRecord]:
        """Return records with the highest search counts."""
        return sorted(
            self.foods.values(), key=lambda food: food.search_count, reverse=True
        )[:limit]

    def list_recent(self, limit: int) -> list[FoodRecord]:
        """Return the most recently updated records, undated ones last."""
        return sorted(
            self.foods.values(),
            key=lambda food: food.last_updated or _OLDEST,
            reverse=True,
        )[:limit]

    def list_by_category(self, category: str, limit: int) -> list[FoodRecord]:
        """Return records in a category, compared case-insensitively."""
        wanted = category.strip().lower()
        return [
            food
            for food in self.foods.values()
            if (food.category or "").lower() == wanted
        ][:limit]
