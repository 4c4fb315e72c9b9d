"""Domain models for food records."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

DEFAULT_SERVING_GRAMS = 100.0


class FoodSource(Enum):
    """Where a food record originated."""

    USER = "user"
    EXTERNAL = "external"
    AI = "ai"


@dataclass(frozen=True)
class Per100g:
    """Macronutrients normalized to a 100 gram basis."""

    kcal: float
    protein: float
    carbs: float
    fat: float

    def __post_init__(self) -> None:
        for name in ("kcal", "protein", "carbs", "fat"):
            if getattr(self, name) < 0:
                raise ValueError(f"per100g.{name} must be non-negative")


@dataclass(frozen=True)
class Serving:
    """A named portion expressed in grams."""

    label: str
    grams: float


def default_servings() -> tuple[Serving, ...]:
    """Return the serving list used when a provider gives no gram size."""
    return (Serving(label="100g", grams=DEFAULT_SERVING_GRAMS),)


@dataclass(frozen=True)
class FoodRecord:
    """A nutrition entry, either persisted or a search candidate."""

    name: str
    per100g: Per100g
    brand: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    servings: tuple[Serving, ...] = field(default_factory=default_servings)
    verified: bool = False
    source: FoodSource = FoodSource.USER
    id: str | None = None
    search_count: int = 0
    last_updated: datetime | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("FoodRecord.name must be non-empty")
        if self.search_count < 0:
            raise ValueError("FoodRecord.search_count must be >= 0")

    @property
    def dedup_key(self) -> str:
        """Identity used to recognize two records as the same food."""
        return dedup_key(self.name, self.brand)


def dedup_key(name: str, brand: str | None) -> str:
    """Build the `name::brand` identity, both lower-cased and trimmed."""
    return f"{name.strip().lower()}::{(brand or '').strip().lower()}"
