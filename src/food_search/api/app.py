"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request, status

from food_search.api.models import (
    CreatedFoodPayload,
    FoodListPayload,
    FoodPayload,
    SearchResponsePayload,
)
from food_search.app_logging import configure_logging
from food_search.containers import AppContainer
from food_search.domain.search import SearchOptions


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/foods/search")
    async def search_foods(  # noqa: PLR0913
        request: Request,
        q: str = "",
        limit: int | None = Query(default=None, ge=1),
        include_external: bool = True,
        max_wait_ms: int | None = Query(default=None, ge=0),
        use_cache: bool = True,
        include_ai: bool = False,
    ) -> SearchResponsePayload:
        """Search foods by free-text name."""
        state_container: AppContainer = request.app.state.container
        response = await state_container.search_service.search(
            q,
            SearchOptions(
                limit=limit,
                include_external=include_external,
                max_wait_ms=max_wait_ms,
                use_cache=use_cache,
                include_ai=include_ai,
            ),
        )
        return SearchResponsePayload.from_response(response)

    @app.get("/foods/popular")
    async def popular_foods(
        request: Request, limit: int = Query(default=10, ge=1, le=100)
    ) -> FoodListPayload:
        """Return the most searched foods."""
        state_container: AppContainer = request.app.state.container
        foods = state_container.search_service.popular_foods(limit)
        return FoodListPayload(foods=[FoodPayload.from_record(food) for food in foods])

    @app.get("/foods/recent")
    async def recent_foods(
        request: Request, limit: int = Query(default=10, ge=1, le=100)
    ) -> FoodListPayload:
        """Return the most recently updated foods."""
        state_container: AppContainer = request.app.state.container
        foods = state_container.search_service.recent_foods(limit)
        return FoodListPayload(foods=[FoodPayload.from_record(food) for food in foods])

    @app.get("/foods/categories/{category}")
    async def foods_by_category(
        category: str,
        request: Request,
        limit: int = Query(default=20, ge=1, le=100),
    ) -> FoodListPayload:
        """Return foods in a category."""
        state_container: AppContainer = request.app.state.container
        foods = state_container.search_service.foods_by_category(category, limit)
        return FoodListPayload(foods=[FoodPayload.from_record(food) for food in foods])

    @app.post("/foods", status_code=status.HTTP_201_CREATED)
    async def add_food(payload: FoodPayload, request: Request) -> CreatedFoodPayload:
        """Store a food, typically an accepted external candidate."""
        state_container: AppContainer = request.app.state.container
        try:
            record = payload.to_record()
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        food_id = state_container.search_service.add_food(record)
        logger.info("Stored food %s (%s)", record.name, food_id)
        return CreatedFoodPayload(id=food_id)

    return app
