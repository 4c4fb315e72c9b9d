"""Supabase implementation of the food record store."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from food_search.domain.foods import (
    FoodRecord,
    FoodSource,
    Per100g,
    Serving,
    dedup_key,
    default_servings,
)
from food_search.services.search import FoodRepository

_TABLE = "foods"

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseFoodRepository(FoodRepository):
    """Supabase-backed repository for food records."""

    client: Client

    def count(self) -> int:
        """Return the number of stored foods without fetching them."""
        response = (
            self.client.table(_TABLE).select("id", count="exact").limit(1).execute()
        )
        return int(response.count or 0)

    def read_all(self) -> list[FoodRecord]:
        """Return every stored food."""
        response = self.client.table(_TABLE).select("*").execute()
        return _parse_rows(response.data or [])

    def insert(self, record: FoodRecord) -> str:
        """Insert a food, or update the row sharing its (name, brand) identity."""
        now = datetime.now(tz=UTC)
        existing = self.find_by_name_and_brand(record.name, record.brand)
        if existing is not None and existing.id is not None:
            payload = {
                **_serialize_food(record),
                "search_count": existing.search_count + 1,
                "last_updated": now.isoformat(),
            }
            response = (
                self.client.table(_TABLE)
                .update(payload)
                .eq("id", existing.id)
                .execute()
            )
            if not response.data:
                raise RuntimeError("Failed to update food entry")
            return str(response.data[0]["id"])

        payload = {
            **_serialize_food(record),
            "search_count": 1,
            "last_updated": now.isoformat(),
        }
        response = self.client.table(_TABLE).insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create food entry")
        return str(response.data[0]["id"])

    def find_by_name_and_brand(self, name: str, brand: str | None) -> FoodRecord | None:
        """Return the food matching the case-insensitive (name, brand) pair."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .ilike("name", _escape_like(name.strip()))
            .execute()
        )
        key = dedup_key(name, brand)
        for food in _parse_rows(response.data or []):
            if food.dedup_key == key:
                return food
        return None

    def list_popular(self, limit: int) -> list[FoodRecord]:
        """Return foods with the highest search counts."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .order("search_count", desc=True)
            .limit(limit)
            .execute()
        )
        return _parse_rows(response.data or [])

    def list_recent(self, limit: int) -> list[FoodRecord]:
        """Return the most recently updated foods, undated ones last."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .order("last_updated", desc=True, nullsfirst=False)
            .limit(limit)
            .execute()
        )
        return _parse_rows(response.data or [])

    def list_by_category(self, category: str, limit: int) -> list[FoodRecord]:
        """Return foods in a category, compared case-insensitively."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .ilike("category", _escape_like(category.strip()))
            .limit(limit)
            .execute()
        )
        return _parse_rows(response.data or [])


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the pattern matches the text literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_rows(rows: list[dict[str, object]]) -> list[FoodRecord]:
    """Parse rows, skipping any that cannot be read."""
    foods: list[FoodRecord] = []
    for row in rows:
        try:
            foods.append(_parse_food(row))
        except (KeyError, TypeError, ValueError) as exc:
            _logger.warning("Skipping unreadable food row %s: %s", row.get("id"), exc)
    return foods


def _serialize_food(record: FoodRecord) -> dict[str, object]:
    """Convert a record to a row payload without storage-managed columns."""
    return {
        "name": record.name,
        "brand": record.brand,
        "category": record.category,
        "tags": list(record.tags),
        "per100g": {
            "kcal": record.per100g.kcal,
            "protein": record.per100g.protein,
            "carbs": record.per100g.carbs,
            "fat": record.per100g.fat,
        },
        "servings": [
            {"label": serving.label, "grams": serving.grams}
            for serving in record.servings
        ],
        "verified": record.verified,
        "source": record.source.value,
    }


def _parse_food(row: dict[str, object]) -> FoodRecord:
    """Build a record from a Supabase row."""
    per100g = row.get("per100g") or {}
    servings = tuple(
        Serving(label=str(item["label"]), grams=float(item["grams"]))
        for item in row.get("servings") or []
    )
    last_updated = row.get("last_updated")
    return FoodRecord(
        id=str(row["id"]),
        name=str(row["name"]),
        brand=row.get("brand"),
        category=row.get("category"),
        tags=tuple(row.get("tags") or ()),
        per100g=Per100g(
            kcal=float(per100g.get("kcal", 0)),
            protein=float(per100g.get("protein", 0)),
            carbs=float(per100g.get("carbs", 0)),
            fat=float(per100g.get("fat", 0)),
        ),
        servings=servings or default_servings(),
        verified=bool(row.get("verified", False)),
        source=FoodSource(row.get("source") or FoodSource.USER.value),
        search_count=int(row.get("search_count") or 0),
        last_updated=(
            datetime.fromisoformat(str(last_updated)) if last_updated else None
        ),
    )
