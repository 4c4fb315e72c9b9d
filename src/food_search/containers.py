"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_search.adapters.fdc_client import HttpxFdcClient
from food_search.adapters.memory_food_repository import InMemoryFoodRepository
from food_search.adapters.open_food_facts_client import HttpxOpenFoodFactsClient
from food_search.adapters.openai_suggestion_client import OpenAISuggestionClient
from food_search.adapters.supabase_food_repository import SupabaseFoodRepository
from food_search.config import Settings
from food_search.domain.seed import seed_foods
from food_search.services.cache import InMemorySearchCache
from food_search.services.fuzzy_index import LocalFuzzyIndex
from food_search.services.quality import QualityClassifier
from food_search.services.search import FoodRepository, FoodSearchService
from food_search.services.sources import (
    ExternalSearch,
    ExternalSource,
    OpenFoodFactsSource,
    UsdaFoodSource,
)
from food_search.services.suggestions import SuggestionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_repository: FoodRepository
    search_service: FoodSearchService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    food_repository: FoodRepository
    if resolved_settings.supabase_enabled:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        food_repository = SupabaseFoodRepository(supabase_client)
    else:
        food_repository = InMemoryFoodRepository.from_records(seed_foods())

    closers: list[Callable[[], Awaitable[None]]] = []
    sources: list[ExternalSource] = []
    off_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.open_food_facts_base_url,
        timeout_seconds=resolved_settings.external_timeout_seconds,
    )
    sources.append(OpenFoodFactsSource(off_client))
    closers.append(off_client.close)
    if resolved_settings.fdc_api_key:
        fdc_client = HttpxFdcClient.create(
            api_key=resolved_settings.fdc_api_key,
            base_url=resolved_settings.fdc_base_url,
            timeout_seconds=resolved_settings.external_timeout_seconds,
        )
        sources.append(UsdaFoodSource(fdc_client))
        closers.append(fdc_client.close)

    suggestion_service = None
    if resolved_settings.openai_api_key:
        openai_client = OpenAISuggestionClient.create(resolved_settings.openai_api_key)
        suggestion_service = SuggestionService(
            client=openai_client, model=resolved_settings.openai_model
        )
        closers.append(openai_client.close)

    search_service = FoodSearchService(
        repository=food_repository,
        index=LocalFuzzyIndex(
            match_threshold=resolved_settings.fuzzy_match_threshold,
            accept_threshold=resolved_settings.fuzzy_accept_threshold,
        ),
        cache=InMemorySearchCache(ttl_seconds=resolved_settings.cache_ttl_seconds),
        external=ExternalSearch(
            sources=sources,
            timeout_seconds=resolved_settings.external_timeout_seconds,
            page_size=resolved_settings.external_page_size,
        ),
        classifier=QualityClassifier(
            high_threshold=resolved_settings.quality_high_threshold,
            medium_threshold=resolved_settings.quality_medium_threshold,
        ),
        suggestions=suggestion_service,
        default_limit=resolved_settings.search_default_limit,
        max_limit=resolved_settings.search_max_limit,
        sufficiency_ratio=resolved_settings.local_sufficiency_ratio,
        debounce_delay_seconds=resolved_settings.debounce_delay_seconds,
    )
    search_service.refresh()

    async def close_resources() -> None:
        for close in closers:
            await close()

    return AppContainer(
        settings=resolved_settings,
        food_repository=food_repository,
        search_service=search_service,
        close_resources=close_resources,
    )
