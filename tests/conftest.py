"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from food_search.adapters.fdc_client import FdcClient
from food_search.adapters.memory_food_repository import InMemoryFoodRepository
from food_search.adapters.open_food_facts_client import OpenFoodFactsClient
from food_search.config import Settings
from food_search.containers import AppContainer
from food_search.domain.foods import FoodRecord, FoodSource, Per100g
from food_search.services.cache import InMemorySearchCache, SearchCache
from food_search.services.fuzzy_index import LocalFuzzyIndex
from food_search.services.search import FoodSearchService
from food_search.services.sources import ExternalSearch, ExternalSource
from food_search.services.suggestions import SuggestionClient, SuggestionService


def make_food(  # noqa: PLR0913
    name: str,
    brand: str | None = None,
    *,
    tags: tuple[str, ...] = (),
    category: str | None = None,
    kcal: float = 100.0,
    source: FoodSource = FoodSource.USER,
    food_id: str | None = None,
    search_count: int = 0,
) -> FoodRecord:
    """Build a food record with sensible defaults."""
    return FoodRecord(
        name=name,
        brand=brand,
        category=category,
        tags=tags,
        per100g=Per100g(kcal=kcal, protein=5.0, carbs=10.0, fat=2.0),
        verified=source is FoodSource.EXTERNAL,
        source=source,
        id=food_id,
        search_count=search_count,
    )


def make_external(name: str, brand: str | None = None) -> FoodRecord:
    """Build an external candidate as adapters produce them."""
    return make_food(name, brand, source=FoodSource.EXTERNAL)


@dataclass
class FakeSource(ExternalSource):
    """External source returning canned records and recording queries."""

    name: str = "fake"
    records: list[FoodRecord] = field(default_factory=list)
    error: Exception | None = None
    delay_seconds: float = 0.0
    queries: list[str] = field(default_factory=list)

    async def search(self, query: str, limit: int) -> list[FoodRecord]:
        self.queries.append(query)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return list(self.records)


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client with an in-memory payload."""

    payload: object = field(default_factory=lambda: {"foods": []})
    error: Exception | None = None
    calls: list[tuple[str, int]] = field(default_factory=list)

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        self.calls.append((query, page_size))
        if self.error is not None:
            raise self.error
        return self.payload  # type: ignore[return-value]


@dataclass
class FakeOpenFoodFactsClient(OpenFoodFactsClient):
    """Fake Open Food Facts client with an in-memory payload."""

    payload: object = field(default_factory=lambda: {"products": []})
    error: Exception | None = None
    calls: list[tuple[str, int]] = field(default_factory=list)

    async def search_products(
        self, search_terms: str, page_size: int = 20
    ) -> dict[str, object]:
        self.calls.append((search_terms, page_size))
        if self.error is not None:
            raise self.error
        return self.payload  # type: ignore[return-value]


@dataclass
class FakeSuggestionClient(SuggestionClient):
    """Fake LLM client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {"suggestions": ["Paneer tikka", "Moong dal chilla"]}
    )
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def suggest(
        self, *, model: str, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    now: datetime = field(default_factory=lambda: datetime(2026, 1, 1, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class BrokenCache(SearchCache):
    """Cache whose storage is unavailable."""

    def get(self, query: str) -> list[FoodRecord] | None:
        raise RuntimeError("storage unavailable")

    def put(self, query: str, results: list[FoodRecord]) -> None:
        raise RuntimeError("storage unavailable")


class BrokenRepository(InMemoryFoodRepository):
    """Repository whose reads always fail."""

    def read_all(self) -> list[FoodRecord]:
        raise RuntimeError("store offline")

    def list_popular(self, limit: int) -> list[FoodRecord]:
        raise RuntimeError("store offline")


@dataclass
class CountingRepository(InMemoryFoodRepository):
    """In-memory store that records how often the full table is read."""

    full_reads: int = 0

    def read_all(self) -> list[FoodRecord]:
        self.full_reads += 1
        return super().read_all()


def build_service(  # noqa: PLR0913
    records: list[FoodRecord] | None = None,
    sources: list[ExternalSource] | None = None,
    *,
    cache: SearchCache | None = None,
    repository: InMemoryFoodRepository | None = None,
    suggestion_client: SuggestionClient | None = None,
    timeout_seconds: float = 3.0,
    debounce_delay_seconds: float = 0.05,
) -> FoodSearchService:
    """Wire a search service over in-memory collaborators."""
    return FoodSearchService(
        repository=repository or InMemoryFoodRepository.from_records(records or []),
        index=LocalFuzzyIndex(),
        cache=cache or InMemorySearchCache(),
        external=ExternalSearch(
            sources=list(sources or []), timeout_seconds=timeout_seconds
        ),
        suggestions=(
            SuggestionService(client=suggestion_client, model="test-model")
            if suggestion_client is not None
            else None
        ),
        debounce_delay_seconds=debounce_delay_seconds,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url=None,
        supabase_service_key=None,
        fdc_api_key=None,
        openai_api_key=None,
    )


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource(records=[make_external("Roti Canai", "Mamak")])


@pytest.fixture
def container(settings: Settings, fake_source: FakeSource) -> AppContainer:
    repository = InMemoryFoodRepository.from_records(
        [
            make_food("Roti", category="breads", kcal=297),
            make_food("Paneer", "Amul", category="dairy", kcal=265),
            make_food("Toor Dal", category="pulses", tags=("dal", "lentil")),
        ]
    )
    search_service = build_service(repository=repository, sources=[fake_source])

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        food_repository=repository,
        search_service=search_service,
        close_resources=close_resources,
    )
