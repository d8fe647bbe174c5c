"""Dependency health check for the cache, the model and the catalog."""

import asyncio
from http import HTTPStatus

from src.clients.elasticsearch import ElasticsearchCache
from src.clients.gemini import GeminiModel
from src.clients.mealdb import MealDBClient
from src.models.models import DependencyStatus, HealthResponse


class HealthService:
    def __init__(self, cache: ElasticsearchCache, model: GeminiModel, catalog: MealDBClient) -> None:
        self.cache = cache
        self.model = model
        self.catalog = catalog

    async def check(self) -> tuple[int, HealthResponse]:
        """Ping all dependencies concurrently.

        Returns:
            (200, "ok") when every dependency answers, else (503, "degraded").
        """
        cache_ok, model_ok, catalog_ok = await asyncio.gather(
            self.cache.ping(), self.model.ping(), self.catalog.ping()
        )
        all_ok = cache_ok and model_ok and catalog_ok
        body = HealthResponse(
            status="ok" if all_ok else "degraded",
            elasticsearch=DependencyStatus(url=self.cache.base_url, ok=cache_ok),
            model=DependencyStatus(url=f"gemini:{self.model.model}", ok=model_ok),
            mealdb=DependencyStatus(url=self.catalog.base_url, ok=catalog_ok),
        )
        return (HTTPStatus.OK if all_ok else HTTPStatus.SERVICE_UNAVAILABLE), body
