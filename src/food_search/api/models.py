"""Pydantic models for the search HTTP API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from food_search.domain.foods import FoodRecord, FoodSource, Per100g, Serving
from food_search.domain.search import SearchResponse


class Per100gPayload(BaseModel):
    """Macronutrients per 100 grams."""

    kcal: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)


class ServingPayload(BaseModel):
    """A named portion in grams."""

    label: str
    grams: float = Field(gt=0)


class FoodPayload(BaseModel):
    """Food record as exchanged over HTTP."""

    id: str | None = None
    name: str = Field(min_length=1)
    brand: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    per100g: Per100gPayload
    servings: list[ServingPayload] = Field(
        default_factory=lambda: [ServingPayload(label="100g", grams=100)],
        min_length=1,
    )
    verified: bool = False
    source: Literal["user", "external", "ai"] = "user"
    search_count: int = Field(default=0, ge=0)
    last_updated: datetime | None = None

    @classmethod
    def from_record(cls, record: FoodRecord) -> "FoodPayload":
        """Serialize a domain record."""
        return cls(
            id=record.id,
            name=record.name,
            brand=record.brand,
            category=record.category,
            tags=list(record.tags),
            per100g=Per100gPayload(
                kcal=record.per100g.kcal,
                protein=record.per100g.protein,
                carbs=record.per100g.carbs,
                fat=record.per100g.fat,
            ),
            servings=[
                ServingPayload(label=serving.label, grams=serving.grams)
                for serving in record.servings
            ],
            verified=record.verified,
            source=record.source.value,
            search_count=record.search_count,
            last_updated=record.last_updated,
        )

    def to_record(self) -> FoodRecord:
        """Build an unpersisted domain record; ids are assigned by the store."""
        return FoodRecord(
            name=self.name.strip(),
            brand=self.brand,
            category=self.category,
            tags=tuple(self.tags),
            per100g=Per100g(
                kcal=self.per100g.kcal,
                protein=self.per100g.protein,
                carbs=self.per100g.carbs,
                fat=self.per100g.fat,
            ),
            servings=tuple(
                Serving(label=serving.label, grams=serving.grams)
                for serving in self.servings
            ),
            verified=self.verified,
            source=FoodSource(self.source),
        )


class SearchQualityPayload(BaseModel):
    """Quality metadata for a search."""

    quality: Literal["High", "Medium", "Low"]
    method: Literal["Fuzzy", "Fallback", "External", "Cached", "Hybrid"]
    total_found: int
    quality_kept: int


class SearchResponsePayload(BaseModel):
    """Ranked search results with quality metadata."""

    results: list[FoodPayload]
    quality: SearchQualityPayload
    ai_suggestions: list[str] | None = None

    @classmethod
    def from_response(cls, response: SearchResponse) -> "SearchResponsePayload":
        """Serialize a domain search response."""
        return cls(
            results=[FoodPayload.from_record(record) for record in response.results],
            quality=SearchQualityPayload(
                quality=response.quality.quality.value,
                method=response.quality.method.value,
                total_found=response.quality.total_found,
                quality_kept=response.quality.quality_kept,
            ),
            ai_suggestions=response.ai_suggestions,
        )


class FoodListPayload(BaseModel):
    """A plain list of foods."""

    foods: list[FoodPayload]


class CreatedFoodPayload(BaseModel):
    """Identifier of a stored food."""

    id: str
