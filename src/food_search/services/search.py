"""Hybrid food search orchestrating local, cached and remote candidates."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Protocol

from food_search.config import resolve_limit
from food_search.domain.foods import FoodRecord
from food_search.domain.search import (
    ExternalOrigin,
    LocalMatches,
    QualityTier,
    SearchMethod,
    SearchOptions,
    SearchQuality,
    SearchResponse,
    SearchState,
    normalize_query,
)
from food_search.services.cache import SearchCache
from food_search.services.debounce import Debouncer, TimerHandle
from food_search.services.fuzzy_index import LocalFuzzyIndex
from food_search.services.merge import merge_and_deduplicate
from food_search.services.quality import QualityClassifier
from food_search.services.ranking import rank_by_relevance
from food_search.services.sources import ExternalSearch
from food_search.services.suggestions import SuggestionService

AI_SUGGESTION_BELOW = 5

_logger = logging.getLogger(__name__)


class FoodRepository(Protocol):
    """Persistence interface for food records."""

    def count(self) -> int:
        """Return the number of stored food records."""

    def read_all(self) -> list[FoodRecord]:
        """Return every stored food record."""

    def insert(self, record: FoodRecord) -> str:
        """Persist a record and return its id."""

    def find_by_name_and_brand(self, name: str, brand: str | None) -> FoodRecord | None:
        """Return the record sharing the (name, brand) identity, if present."""

    def list_popular(self, limit: int) -> list[FoodRecord]:
        """Return records with the highest search counts."""

    def list_recent(self, limit: int) -> list[FoodRecord]:
        """Return the most recently updated records."""

    def list_by_category(self, category: str, limit: int) -> list[FoodRecord]:
        """Return records in a category, compared case-insensitively."""


@dataclass(frozen=True)
class _SearchTicket:
    """Identity of one search call, checked before results are applied."""

    generation: int
    query: str
    options: SearchOptions


@dataclass
class FoodSearchService:
    """Entry point for searches over the local store and remote sources."""

    repository: FoodRepository
    index: LocalFuzzyIndex
    cache: SearchCache
    external: ExternalSearch
    classifier: QualityClassifier = field(default_factory=QualityClassifier)
    suggestions: SuggestionService | None = None
    default_limit: int = 20
    max_limit: int = 50
    sufficiency_ratio: float = 0.8
    debounce_delay_seconds: float = 0.3
    state: SearchState = field(default=SearchState.IDLE, init=False)
    _debouncer: Debouncer = field(default_factory=Debouncer, init=False)
    _generation: int = field(default=0, init=False)
    _started: _SearchTicket | None = field(default=None, init=False)
    _last: tuple[_SearchTicket, SearchResponse] | None = field(
        default=None, init=False
    )

    def refresh(self) -> bool:
        """Rebuild the index from the store if the record count changed."""
        try:
            if not self.index.is_stale(self.repository.count()):
                return False
            records = self.repository.read_all()
        except Exception:
            _logger.exception("Failed to read food records; keeping current index")
            return False
        return self.index.build(records)

    async def search(
        self, query: str, options: SearchOptions | None = None
    ) -> SearchResponse:
        """Search local foods, topping up from cache or remote sources."""
        response, _ = await self._search(query, options or SearchOptions())
        return response

    def debounced_search(
        self,
        query: str,
        callback: Callable[[SearchResponse], None],
        options: SearchOptions | None = None,
        delay: float | None = None,
    ) -> TimerHandle:
        """Run a search after a quiet period; only the latest query reports back."""

        async def run() -> None:
            response, ticket = await self._search(query, options or SearchOptions())
            if self._is_current(ticket):
                callback(response)
            else:
                _logger.debug("Discarding stale results for query=%s", query)

        wait = self.debounce_delay_seconds if delay is None else delay
        return self._debouncer.schedule(run, wait)

    def add_food(self, record: FoodRecord) -> str:
        """Persist an accepted food and refresh the local index."""
        food_id = self.repository.insert(record)
        self._last = None
        self.refresh()
        return food_id

    def popular_foods(self, limit: int = 10) -> list[FoodRecord]:
        """Return stored foods with the highest search counts."""
        return self._browse(self.repository.list_popular, limit)

    def recent_foods(self, limit: int = 10) -> list[FoodRecord]:
        """Return the most recently updated stored foods."""
        return self._browse(self.repository.list_recent, limit)

    def foods_by_category(self, category: str, limit: int = 20) -> list[FoodRecord]:
        """Return stored foods in a category, compared case-insensitively."""
        return self._browse(
            lambda size: self.repository.list_by_category(category.strip(), size),
            limit,
        )

    async def _search(
        self, query: str, options: SearchOptions
    ) -> tuple[SearchResponse, _SearchTicket]:
        normalized = normalize_query(query)
        repeated = self._repeat_of_latest(normalized, options)
        if repeated is not None:
            _logger.debug("Duplicate query suppressed: %s", normalized)
            return repeated

        self._generation += 1
        ticket = _SearchTicket(
            generation=self._generation, query=normalized, options=options
        )
        self._started = ticket
        if not normalized:
            return _empty_response(), ticket
        limit = resolve_limit(options.limit, self.default_limit, self.max_limit)

        self._transition(SearchState.LOCAL_SEARCH)
        local = self._search_local(normalized, limit)

        external: list[FoodRecord] = []
        origin = ExternalOrigin.NONE
        if self._wants_external(len(local.records), limit, options):
            try:
                external, origin = await self._external_candidates(
                    normalized, options
                )
            except Exception:
                _logger.exception("External lookup failed; using local results")
                external, origin = [], ExternalOrigin.NONE

        self._transition(SearchState.MERGE_RANK)
        merged = merge_and_deduplicate(local.records, external, limit)
        ranked = rank_by_relevance(merged, normalized)

        self._transition(SearchState.CLASSIFY)
        local_keys = {record.dedup_key for record in local.records}
        quality = self.classifier.classify(
            local_count=len(local.records),
            local_method=local.method,
            external_count=len(external),
            external_kept=sum(
                1 for record in ranked if record.dedup_key not in local_keys
            ),
            external_origin=origin,
            kept=len(ranked),
        )

        ai_suggestions = None
        if (
            options.include_ai
            and self.suggestions is not None
            and len(ranked) < AI_SUGGESTION_BELOW
        ):
            ai_suggestions = await self.suggestions.suggest(normalized)

        response = SearchResponse(
            results=ranked, quality=quality, ai_suggestions=ai_suggestions
        )
        self._transition(SearchState.DONE)
        if self._is_current(ticket):
            self._last = (ticket, response)
        _logger.info(
            "Search query=%s method=%s found=%s kept=%s",
            normalized,
            quality.method.value,
            quality.total_found,
            quality.quality_kept,
        )
        return response, ticket

    def _search_local(self, query: str, limit: int) -> LocalMatches:
        self.refresh()
        matches = self.index.search(query, limit)
        if matches:
            return LocalMatches(
                records=[match.record for match in matches],
                method=SearchMethod.FUZZY,
            )
        return LocalMatches(
            records=self.index.fallback_search(query, limit),
            method=SearchMethod.FALLBACK,
        )

    def _wants_external(
        self, local_count: int, limit: int, options: SearchOptions
    ) -> bool:
        if not options.include_external or not self.external.enabled:
            return False
        return local_count < limit * self.sufficiency_ratio

    async def _external_candidates(
        self, query: str, options: SearchOptions
    ) -> tuple[list[FoodRecord], ExternalOrigin]:
        self._transition(SearchState.CACHE_CHECK)
        if options.use_cache:
            cached = self._cache_get(query)
            if cached is not None:
                return cached, ExternalOrigin.CACHED

        self._transition(SearchState.EXTERNAL_FETCH)
        timeout = self.external.timeout_seconds
        if options.max_wait_ms is not None:
            timeout = min(timeout, max(options.max_wait_ms, 0) / 1000)
        fetched = await self.external.fetch(query, timeout_seconds=timeout)
        if fetched and options.use_cache:
            self._cache_put(query, fetched)
        return fetched, ExternalOrigin.LIVE

    def _cache_get(self, query: str) -> list[FoodRecord] | None:
        try:
            return self.cache.get(query)
        except Exception as exc:
            _logger.warning("Search cache read failed, treating as miss: %s", exc)
            return None

    def _cache_put(self, query: str, results: list[FoodRecord]) -> None:
        try:
            self.cache.put(query, results)
        except Exception as exc:
            _logger.warning("Search cache write failed: %s", exc)

    def _repeat_of_latest(
        self, query: str, options: SearchOptions
    ) -> tuple[SearchResponse, _SearchTicket] | None:
        """Reuse the answer of the latest started search if it asked the same."""
        if self._started is None or self._last is None:
            return None
        last_ticket, last_response = self._last
        if last_ticket.generation != self._started.generation:
            return None
        if last_ticket.query != query or last_ticket.options != options:
            return None
        self._generation += 1
        ticket = replace(last_ticket, generation=self._generation)
        self._started = ticket
        self._last = (ticket, last_response)
        return last_response, ticket

    def _browse(
        self, fetch: Callable[[int], list[FoodRecord]], limit: int
    ) -> list[FoodRecord]:
        try:
            return fetch(limit)
        except Exception:
            _logger.exception("Failed to read food records")
            return []

    def _is_current(self, ticket: _SearchTicket | None) -> bool:
        return ticket is not None and ticket.generation == self._generation

    def _transition(self, state: SearchState) -> None:
        _logger.debug("Search state %s -> %s", self.state.value, state.value)
        self.state = state


def _empty_response() -> SearchResponse:
    return SearchResponse(
        results=[],
        quality=SearchQuality(
            quality=QualityTier.LOW,
            method=SearchMethod.FALLBACK,
            total_found=0,
            quality_kept=0,
        ),
    )
