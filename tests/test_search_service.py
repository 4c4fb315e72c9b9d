"""Tests for the hybrid food search service."""

import asyncio
from dataclasses import replace
from datetime import UTC, datetime

from food_search.adapters.memory_food_repository import InMemoryFoodRepository
from food_search.domain.foods import FoodSource
from food_search.domain.search import (
    QualityTier,
    SearchMethod,
    SearchOptions,
    SearchResponse,
    SearchState,
)
from tests.conftest import (
    BrokenCache,
    BrokenRepository,
    CountingRepository,
    FakeSource,
    FakeSuggestionClient,
    build_service,
    make_external,
    make_food,
)


def test_local_exact_match_without_external_hits() -> None:
    source = FakeSource()
    service = build_service([make_food("Roti")], [source])

    response = asyncio.run(service.search("roti"))

    assert [record.name for record in response.results] == ["Roti"]
    assert response.quality.method is SearchMethod.FUZZY
    assert response.quality.quality is QualityTier.LOW
    assert response.quality.total_found == 1
    assert response.quality.quality_kept == 1
    assert service.state is SearchState.DONE


def test_unknown_query_reports_external_method() -> None:
    sources = [FakeSource(name="usda"), FakeSource(name="openfoodfacts")]
    service = build_service([], sources)

    response = asyncio.run(service.search("xyzzynomatch"))

    assert response.results == []
    assert response.quality.quality is QualityTier.LOW
    assert response.quality.method is SearchMethod.EXTERNAL
    assert response.quality.total_found == 0
    assert response.quality.quality_kept == 0
    assert all(source.queries == ["xyzzynomatch"] for source in sources)


def test_blank_query_returns_empty_fallback() -> None:
    source = FakeSource()
    service = build_service([make_food("Roti")], [source])

    response = asyncio.run(service.search("   "))

    assert response.results == []
    assert response.quality.method is SearchMethod.FALLBACK
    assert response.quality.quality is QualityTier.LOW
    assert source.queries == []


def test_local_and_live_results_are_hybrid() -> None:
    source = FakeSource(records=[make_external("Roti Canai", "Mamak")])
    service = build_service([make_food("Roti")], [source])

    response = asyncio.run(service.search("roti"))

    assert [record.name for record in response.results] == ["Roti", "Roti Canai"]
    assert response.quality.method is SearchMethod.HYBRID
    assert response.quality.total_found == 2


def test_fallback_used_when_fuzzy_finds_nothing() -> None:
    service = build_service([make_food("Roti"), make_food("Idli")])

    response = asyncio.run(service.search("r"))

    assert [record.name for record in response.results] == ["Roti"]
    assert response.quality.method is SearchMethod.FALLBACK


def test_local_record_preferred_over_external_duplicate() -> None:
    source = FakeSource(records=[make_external("ROTI")])
    service = build_service([make_food("Roti")], [source])

    response = asyncio.run(service.search("roti"))

    assert len(response.results) == 1
    assert response.results[0].source is FoodSource.USER
    assert response.results[0].id is not None
    assert response.quality.total_found == 2
    assert response.quality.quality_kept == 1
    assert response.quality.method is SearchMethod.FUZZY


def test_failing_sources_degrade_to_local_results() -> None:
    sources = [
        FakeSource(name="usda", error=RuntimeError("boom")),
        FakeSource(name="openfoodfacts", error=TimeoutError()),
    ]
    service = build_service([make_food("Roti")], sources)

    response = asyncio.run(service.search("roti"))

    assert [record.name for record in response.results] == ["Roti"]
    assert response.quality.method is SearchMethod.FUZZY


def test_max_wait_bounds_external_time() -> None:
    slow = FakeSource(records=[make_external("Roti Canai")], delay_seconds=1.0)
    service = build_service([make_food("Roti")], [slow])

    response = asyncio.run(service.search("roti", SearchOptions(max_wait_ms=50)))

    assert [record.name for record in response.results] == ["Roti"]
    assert slow.queries == ["roti"]


def test_sufficient_local_results_skip_external() -> None:
    source = FakeSource(records=[make_external("Dal Tadka")])
    records = [make_food(f"Dal variant {i}") for i in range(8)]
    service = build_service(records, [source])

    response = asyncio.run(service.search("dal", SearchOptions(limit=10)))

    assert source.queries == []
    assert len(response.results) == 8
    assert response.quality.method is SearchMethod.FUZZY
    assert response.quality.quality is QualityTier.MEDIUM


def test_external_disabled_by_option() -> None:
    source = FakeSource(records=[make_external("Roti Canai")])
    service = build_service([make_food("Roti")], [source])

    asyncio.run(service.search("roti", SearchOptions(include_external=False)))

    assert source.queries == []


def test_repeat_query_served_from_cache() -> None:
    source = FakeSource(records=[make_external("Roti Canai")])
    service = build_service([make_food("Roti")], [source])

    async def scenario() -> SearchResponse:
        await service.search("roti")
        await service.search("dal")
        return await service.search("roti")

    response = asyncio.run(scenario())

    assert source.queries == ["roti", "dal"]
    assert response.quality.method is SearchMethod.CACHED
    assert [record.name for record in response.results] == ["Roti", "Roti Canai"]


def test_cache_bypassed_when_disabled() -> None:
    source = FakeSource(records=[make_external("Roti Canai")])
    service = build_service([make_food("Roti")], [source])
    no_cache = SearchOptions(use_cache=False)

    async def scenario() -> SearchResponse:
        await service.search("roti", no_cache)
        await service.search("dal", no_cache)
        return await service.search("roti", no_cache)

    response = asyncio.run(scenario())

    assert source.queries == ["roti", "dal", "roti"]
    assert response.quality.method is SearchMethod.HYBRID


def test_empty_external_results_are_not_cached() -> None:
    source = FakeSource()
    service = build_service([make_food("Roti")], [source])

    async def scenario() -> None:
        await service.search("roti")
        await service.search("dal")
        await service.search("roti")

    asyncio.run(scenario())

    assert source.queries == ["roti", "dal", "roti"]


def test_broken_cache_treated_as_miss() -> None:
    source = FakeSource(records=[make_external("Roti Canai")])
    service = build_service([make_food("Roti")], [source], cache=BrokenCache())

    response = asyncio.run(service.search("roti"))

    assert response.quality.method is SearchMethod.HYBRID
    assert len(response.results) == 2


def test_duplicate_query_reuses_previous_response() -> None:
    source = FakeSource(records=[make_external("Roti Canai")])
    service = build_service([make_food("Roti")], [source])

    async def scenario() -> tuple[SearchResponse, SearchResponse, SearchResponse]:
        first = await service.search("roti")
        second = await service.search("  ROTI ")
        third = await service.search("roti", SearchOptions(limit=1))
        return first, second, third

    first, second, third = asyncio.run(scenario())

    assert second is first
    assert third is not first
    assert len(third.results) == 1


def test_unreadable_store_returns_empty_results() -> None:
    service = build_service(repository=BrokenRepository())

    response = asyncio.run(service.search("roti"))

    assert response.results == []
    assert service.popular_foods() == []


def test_debounce_runs_only_latest_query() -> None:
    source = FakeSource()
    service = build_service([], [source], debounce_delay_seconds=0.05)
    delivered: list[SearchResponse] = []

    async def scenario() -> bool:
        first = service.debounced_search("a", delivered.append)
        second = service.debounced_search("ab", delivered.append)
        await first.wait()
        await second.wait()
        return first.cancelled

    first_cancelled = asyncio.run(scenario())

    assert first_cancelled is True
    assert source.queries == ["ab"]
    assert len(delivered) == 1


def test_stale_results_are_discarded() -> None:
    slow = FakeSource(records=[make_external("Roti Canai")], delay_seconds=0.2)
    service = build_service([make_food("Roti"), make_food("Dal Tadka")], [slow])
    local_only = SearchOptions(include_external=False)
    delivered: list[SearchResponse] = []

    async def scenario() -> SearchResponse:
        first = service.debounced_search("roti", delivered.append, delay=0)
        await asyncio.sleep(0.05)
        second = service.debounced_search(
            "dal", delivered.append, options=local_only, delay=0
        )
        await second.wait()
        await first.wait()
        return await service.search("dal", local_only)

    latest = asyncio.run(scenario())

    assert len(delivered) == 1
    assert [record.name for record in delivered[0].results] == ["Dal Tadka"]
    assert latest is delivered[0]


def test_latest_debounced_query_wins_after_returning_to_earlier_query() -> None:
    slow = FakeSource(records=[make_external("Roti Canai")], delay_seconds=0.2)
    service = build_service([make_food("Roti"), make_food("Dal Tadka")], [slow])
    local_only = SearchOptions(include_external=False)
    delivered: list[SearchResponse] = []

    async def scenario() -> None:
        first = service.debounced_search(
            "dal", delivered.append, options=local_only, delay=0
        )
        await first.wait()
        second = service.debounced_search("roti", delivered.append, delay=0)
        await asyncio.sleep(0.05)
        third = service.debounced_search(
            "dal", delivered.append, options=local_only, delay=0
        )
        await third.wait()
        await second.wait()

    asyncio.run(scenario())

    assert [[r.name for r in response.results] for response in delivered] == [
        ["Dal Tadka"],
        ["Dal Tadka"],
    ]


def test_repeated_debounced_query_is_delivered_again() -> None:
    service = build_service([make_food("Dal Tadka")])
    delivered: list[SearchResponse] = []

    async def scenario() -> None:
        first = service.debounced_search("dal", delivered.append, delay=0)
        await first.wait()
        second = service.debounced_search("dal", delivered.append, delay=0)
        await second.wait()

    asyncio.run(scenario())

    assert len(delivered) == 2
    assert delivered[1] is delivered[0]


def test_blank_debounced_query_clears_results() -> None:
    slow = FakeSource(records=[make_external("Roti Canai")], delay_seconds=0.2)
    service = build_service([make_food("Roti")], [slow])
    delivered: list[SearchResponse] = []

    async def scenario() -> None:
        first = service.debounced_search("roti", delivered.append, delay=0)
        await asyncio.sleep(0.05)
        second = service.debounced_search("  ", delivered.append, delay=0)
        await second.wait()
        await first.wait()

    asyncio.run(scenario())

    assert len(delivered) == 1
    assert delivered[0].results == []


def test_unchanged_store_is_read_once_across_searches() -> None:
    repository = CountingRepository()
    repository.insert(make_food("Roti"))
    repository.insert(make_food("Dal Tadka"))
    service = build_service(repository=repository)

    async def scenario() -> None:
        for query in ("roti", "dal", "ro", "tadka", "roti dal"):
            await service.search(query)

    asyncio.run(scenario())

    assert repository.full_reads == 1


def test_added_food_triggers_one_more_full_read() -> None:
    repository = CountingRepository()
    repository.insert(make_food("Roti"))
    service = build_service(repository=repository)

    async def scenario() -> SearchResponse:
        await service.search("roti")
        service.add_food(make_food("Roti Canai", "Mamak"))
        return await service.search("roti")

    response = asyncio.run(scenario())

    assert repository.full_reads == 2
    assert [record.name for record in response.results] == ["Roti", "Roti Canai"]


def test_ai_suggestions_for_sparse_results() -> None:
    client = FakeSuggestionClient(
        payload={"suggestions": ["- Paneer tikka", "2. Dal", "ok"]}
    )
    service = build_service([make_food("Samosa")], suggestion_client=client)

    response = asyncio.run(service.search("samosa", SearchOptions(include_ai=True)))

    assert response.ai_suggestions == ["Paneer tikka"]
    assert client.prompts == ["Suggest 3-5 healthy food alternatives for: samosa"]


def test_ai_suggestions_skipped_when_not_requested_or_plentiful() -> None:
    client = FakeSuggestionClient()
    records = [make_food(f"Dal variant {i}") for i in range(5)]
    service = build_service(records, suggestion_client=client)

    async def scenario() -> tuple[SearchResponse, SearchResponse]:
        plain = await service.search("dal")
        plentiful = await service.search("dal", SearchOptions(include_ai=True))
        return plain, plentiful

    plain, plentiful = asyncio.run(scenario())

    assert plain.ai_suggestions is None
    assert plentiful.ai_suggestions is None
    assert client.prompts == []


def test_add_food_makes_candidate_searchable() -> None:
    source = FakeSource(records=[make_external("Roti Canai", "Mamak")])
    service = build_service([], [source])

    async def scenario() -> tuple[str, SearchResponse]:
        first = await service.search("roti canai")
        food_id = service.add_food(first.results[0])
        return food_id, await service.search("roti canai")

    food_id, response = asyncio.run(scenario())

    assert response.results[0].id == food_id
    assert len(response.results) == 1
    assert response.quality.method is SearchMethod.CACHED
    assert service.index.size == 1


def test_popular_foods_ordered_by_search_count() -> None:
    service = build_service([make_food("Roti"), make_food("Paneer", "Amul")])

    service.add_food(make_food("paneer", "AMUL"))
    popular = service.popular_foods(limit=1)

    assert [food.name for food in popular] == ["paneer"]
    assert popular[0].search_count == 2


def test_recent_foods_and_categories() -> None:
    idli = replace(
        make_food("Idli", category="Breakfast", food_id="2"),
        last_updated=datetime(2026, 5, 1, tzinfo=UTC),
    )
    roti = replace(
        make_food("Roti", category="breads", food_id="1"),
        last_updated=datetime(2026, 1, 1, tzinfo=UTC),
    )
    dosa = make_food("Dosa", category="breakfast", food_id="3")
    repository = InMemoryFoodRepository(foods={"1": roti, "2": idli, "3": dosa})
    service = build_service(repository=repository)

    recent = service.recent_foods(limit=2)
    breakfast = service.foods_by_category(" BREAKFAST ")

    assert [food.name for food in recent] == ["Idli", "Roti"]
    assert [food.name for food in breakfast] == ["Idli", "Dosa"]
