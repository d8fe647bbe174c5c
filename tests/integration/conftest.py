"""Fixtures for integration tests.

Endpoints come from the regular configuration (environment or .env). Tests
skip when the upstream service they need is not reachable.
"""

import pytest
import pytest_asyncio

from src.clients.elasticsearch import ElasticsearchCache
from src.clients.mealdb import MealDBClient
from src.utils.config import config


@pytest_asyncio.fixture
async def live_catalog():
    catalog = MealDBClient(config.MEALDB_URL, timeout_seconds=config.CATALOG_TIMEOUT_SECONDS)
    if not await catalog.ping():
        pytest.skip(f"Recipe catalog not reachable at {config.MEALDB_URL}")
    return catalog


@pytest_asyncio.fixture
async def live_cache():
    # Separate index so test runs never touch served data
    cache = ElasticsearchCache(config.ES_URL, f"{config.ES_INDEX}-it", timeout_seconds=config.CACHE_TIMEOUT_SECONDS)
    if not await cache.ping():
        pytest.skip(f"Elasticsearch not reachable at {config.ES_URL}")
    await cache.ensure_index()
    return cache
