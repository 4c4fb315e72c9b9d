"""External food sources normalized into the common food schema."""

import asyncio
import logging
import re
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Protocol

from food_search.adapters.fdc_client import FdcClient
from food_search.adapters.open_food_facts_client import OpenFoodFactsClient
from food_search.domain.foods import (
    DEFAULT_SERVING_GRAMS,
    FoodRecord,
    FoodSource,
    Per100g,
    Serving,
    default_servings,
)

_USDA_NUTRIENT_IDS = {
    "kcal": 1008,
    "protein": 1003,
    "fat": 1004,
    "carbs": 1005,
}
_USDA_NUTRIENT_NAMES = {
    "kcal": "energy",
    "protein": "protein",
    "fat": "total lipid",
    "carbs": "carbohydrate",
}
_GRAM_UNITS = {"g", "grm", "gram", "grams"}

_OFF_NUTRIENT_KEYS = {
    "kcal": "energy-kcal",
    "protein": "proteins",
    "carbs": "carbohydrates",
    "fat": "fat",
}
_OFF_CATEGORY_HINTS = ("dairy", "fruits", "meat", "grains", "pulses", "vegetables")
_OFF_SEARCH_ALIASES = {
    "dal": "lentil dal indian",
    "dhal": "lentil dal indian",
    "roti": "roti bread indian",
    "rice": "rice grain",
}
_SERVING_GRAMS = re.compile(r"(\d+(?:\.\d+)?)\s*g\b", re.IGNORECASE)

# Popular but unrelated products that providers rank highly for broad queries.
_GENERIC_PRODUCT_WORDS = ("sauce", "spread")

_logger = logging.getLogger(__name__)


class ExternalSource(Protocol):
    """A remote food database that answers free-text queries."""

    name: str

    async def search(self, query: str, limit: int) -> list[FoodRecord]:
        """Return normalized candidates; never raises."""


@dataclass
class UsdaFoodSource(ExternalSource):
    """USDA FoodData Central source."""

    client: FdcClient
    name: str = "usda"

    async def search(self, query: str, limit: int) -> list[FoodRecord]:
        """Search FDC and normalize matching foods to a 100 g basis."""
        payload = await _guard(
            self.name, self.client.search_foods(query, page_size=limit)
        )
        if payload is None:
            return []
        foods = payload.get("foods") or []
        records = [_parse_usda_food(food) for food in foods if isinstance(food, dict)]
        return filter_relevant([r for r in records if r is not None], query)


@dataclass
class OpenFoodFactsSource(ExternalSource):
    """Open Food Facts source."""

    client: OpenFoodFactsClient
    name: str = "openfoodfacts"

    async def search(self, query: str, limit: int) -> list[FoodRecord]:
        """Search Open Food Facts and normalize matching products."""
        payload = await _guard(
            self.name,
            self.client.search_products(expand_search_terms(query), page_size=limit),
        )
        if payload is None:
            return []
        products = payload.get("products") or []
        records = [
            _parse_off_product(product)
            for product in products
            if isinstance(product, dict)
        ]
        return filter_relevant([r for r in records if r is not None], query)


@dataclass
class ExternalSearch:
    """Fans a query out to every source concurrently, each time-boxed."""

    sources: list[ExternalSource] = field(default_factory=list)
    timeout_seconds: float = 3.0
    page_size: int = 20

    @property
    def enabled(self) -> bool:
        """Return True when at least one source is configured."""
        return bool(self.sources)

    async def fetch(
        self, query: str, timeout_seconds: float | None = None
    ) -> list[FoodRecord]:
        """Return the union of all sources, first occurrence per identity kept."""
        if not query.strip() or not self.sources:
            return []
        budget = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        batches = await asyncio.gather(
            *(self._fetch_one(source, query, budget) for source in self.sources)
        )
        merged: list[FoodRecord] = []
        seen: set[str] = set()
        for batch in batches:
            for record in batch:
                if record.dedup_key not in seen:
                    seen.add(record.dedup_key)
                    merged.append(record)
        return merged

    async def _fetch_one(
        self, source: ExternalSource, query: str, timeout_seconds: float
    ) -> list[FoodRecord]:
        try:
            return await asyncio.wait_for(
                source.search(query, self.page_size), timeout=timeout_seconds
            )
        except TimeoutError:
            _logger.warning(
                "External source %s timed out after %ss", source.name, timeout_seconds
            )
        except Exception as exc:
            _logger.warning("External source %s failed: %s", source.name, exc)
        return []


async def _guard(
    source_name: str, call: Awaitable[dict[str, object]]
) -> dict[str, object] | None:
    """Await a provider call, logging and swallowing transport or JSON errors."""
    try:
        payload = await call
    except Exception as exc:
        _logger.warning(
            "External source %s request failed (status=%s): %s",
            source_name,
            _status_code_from_exception(exc),
            exc,
        )
        return None
    if not isinstance(payload, dict):
        _logger.warning("External source %s returned malformed JSON", source_name)
        return None
    return payload


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def expand_search_terms(query: str) -> str:
    """Broaden very short staple queries that providers answer poorly."""
    clean = query.strip().lower()
    return _OFF_SEARCH_ALIASES.get(clean, clean)


def is_relevant(name: str, query: str) -> bool:
    """Return True if a provider name plausibly answers the query."""
    name_lower = name.lower()
    query_lower = query.strip().lower()
    if query_lower not in name_lower:
        return False
    return not any(
        word in name_lower and word not in query_lower
        for word in _GENERIC_PRODUCT_WORDS
    )


def filter_relevant(records: list[FoodRecord], query: str) -> list[FoodRecord]:
    """Drop candidates whose name does not contain the query text."""
    return [record for record in records if is_relevant(record.name, query)]


def scale_to_100g(value: float, serving_grams: float | None) -> float:
    """Convert a per-serving amount to a per-100 g amount."""
    if not serving_grams or serving_grams <= 0:
        return value
    return value * DEFAULT_SERVING_GRAMS / serving_grams


def _parse_number(value: object) -> float:
    """Parse provider numbers, treating missing or invalid values as zero."""
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if number != number or number in (float("inf"), float("-inf")) or number < 0:
        return 0.0
    return number


def _rounded(kcal: float, protein: float, carbs: float, fat: float) -> Per100g:
    return Per100g(
        kcal=round(kcal),
        protein=round(protein, 1),
        carbs=round(carbs, 1),
        fat=round(fat, 1),
    )


def _external_record(  # noqa: PLR0913
    *,
    name: str,
    brand: str | None,
    category: str | None,
    tags: tuple[str, ...],
    per100g: Per100g,
    servings: tuple[Serving, ...],
) -> FoodRecord:
    return FoodRecord(
        name=name,
        brand=brand,
        category=category,
        tags=tags,
        per100g=per100g,
        servings=servings,
        verified=True,
        source=FoodSource.EXTERNAL,
        id=None,
    )


def _usda_nutrients(food_nutrients: list[dict[str, object]]) -> dict[str, float]:
    """Extract energy and macros from FDC nutrients by id, falling back to name."""
    values: dict[str, float] = {}
    for nutrient in food_nutrients:
        if not isinstance(nutrient, dict):
            continue
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient.get("nutrientId") or nutrient_info.get("id")
        nutrient_name = str(
            nutrient.get("nutrientName") or nutrient_info.get("name") or ""
        ).lower()
        unit = str(nutrient.get("unitName") or nutrient_info.get("unitName") or "")
        amount = nutrient.get("value", nutrient.get("amount"))
        for key, expected_id in _USDA_NUTRIENT_IDS.items():
            if key in values or amount is None:
                continue
            if key == "kcal" and unit.lower() == "kj":
                continue
            if (
                nutrient_id == expected_id
                or nutrient_name.startswith(_USDA_NUTRIENT_NAMES[key])
            ):
                values[key] = _parse_number(amount)
    return {key: values.get(key, 0.0) for key in _USDA_NUTRIENT_IDS}


def _parse_usda_food(food: dict[str, object]) -> FoodRecord | None:
    name = str(food.get("description") or "").strip()
    if not name:
        return None
    nutrients = _usda_nutrients(food.get("foodNutrients") or [])
    serving_size = _parse_number(food.get("servingSize"))
    serving_unit = str(food.get("servingSizeUnit") or "").strip()
    serving_grams = (
        serving_size if serving_size and serving_unit.lower() in _GRAM_UNITS else None
    )

    if serving_grams:
        nutrients = {
            key: scale_to_100g(value, serving_grams) for key, value in nutrients.items()
        }
        servings: tuple[Serving, ...] = (
            Serving(label=f"{serving_size:g}g", grams=serving_grams),
        )
    else:
        servings = default_servings()

    category = food.get("foodCategory")
    return _external_record(
        name=name,
        brand=str(food.get("brandOwner") or "").strip() or None,
        category=str(category).lower() if category else None,
        tags=(),
        per100g=_rounded(**nutrients),
        servings=servings,
    )


def _off_serving_grams(product: dict[str, object]) -> float | None:
    size = product.get("serving_size")
    if isinstance(size, str):
        match = _SERVING_GRAMS.search(size)
        if match:
            return _parse_number(match.group(1)) or None
    return None


def _off_per100(
    nutriments: dict[str, object], key: str, serving_grams: float | None
) -> float:
    per_100g = nutriments.get(f"{key}_100g")
    if per_100g is not None:
        return _parse_number(per_100g)
    per_serving = nutriments.get(f"{key}_serving")
    if per_serving is not None and serving_grams:
        return scale_to_100g(_parse_number(per_serving), serving_grams)
    return _parse_number(nutriments.get(key))


def _parse_off_product(product: dict[str, object]) -> FoodRecord | None:
    name = str(product.get("product_name") or "").strip()
    nutriments = product.get("nutriments")
    if not name or not isinstance(nutriments, dict):
        return None
    serving_grams = _off_serving_grams(product)
    values = {
        field_name: _off_per100(nutriments, key, serving_grams)
        for field_name, key in _OFF_NUTRIENT_KEYS.items()
    }
    servings = (
        (Serving(label=str(product.get("serving_size")), grams=serving_grams),)
        if serving_grams
        else default_servings()
    )
    tags = tuple(
        str(tag).removeprefix("en:") for tag in product.get("categories_tags") or []
    )
    brands = str(product.get("brands") or "")
    return _external_record(
        name=name,
        brand=brands.split(",")[0].strip() or None,
        category=_off_category(tags),
        tags=tags,
        per100g=_rounded(**values),
        servings=servings,
    )


def _off_category(tags: tuple[str, ...]) -> str | None:
    joined = " ".join(tags).lower()
    for hint in _OFF_CATEGORY_HINTS:
        if hint in joined:
            return hint
    return None
