"""TheMealDB catalog client (filter by ingredient, lookup by id).

Transport only: every failure raises CatalogError and the pipeline decides
whether it degrades (filter) or aborts the request (lookup).
"""

import asyncio
from typing import Any, Optional

import aiohttp

from src.models.models import MealFull, MealStub
from src.utils.errors import CatalogError
from src.utils.logger import logger


class MealDBClient:
    """Read-only client for the upstream recipe catalog."""

    def __init__(self, base_url: str, timeout_seconds: float = 10) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. "https://www.themealdb.com/api/json/v1/1".
            timeout_seconds: Total timeout per request.
        """
        if not base_url:
            raise ValueError("MEALDB_URL is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def _get_json(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        url = f"{self.base_url}/{path}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params=params) as response:
                    if response.status >= 400:
                        raise CatalogError(f"GET {path} failed with HTTP {response.status}")
                    # TheMealDB answers with text/html content type on some mirrors
                    return await response.json(content_type=None)
        except CatalogError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise CatalogError(f"GET {path} failed: {e}") from e

    @staticmethod
    def _meals(payload: Any) -> list:
        if not isinstance(payload, dict):
            raise CatalogError("Catalog response is not a JSON object")
        meals = payload.get("meals")
        # The catalog reports "no results" as "meals": null (sometimes a string)
        if meals is None or isinstance(meals, str):
            return []
        if not isinstance(meals, list):
            raise CatalogError("Catalog 'meals' is not a list")
        return meals

    async def filter_by_ingredient(self, ingredient: str) -> list[MealStub]:
        """Return the recipes the catalog lists for one ingredient.

        Args:
            ingredient: Ingredient name; normalized to the catalog's lowercase_underscore form.

        Raises:
            CatalogError: Transport failure or malformed payload.
        """
        query = ingredient.strip().lower().replace(" ", "_")
        payload = await self._get_json("filter.php", {"i": query})
        meals = self._meals(payload)
        logger.debug(f"Catalog filter '{query}': {len(meals)} recipes")
        try:
            return [MealStub.model_validate(meal) for meal in meals]
        except ValueError as e:
            raise CatalogError(f"Malformed filter result for '{query}': {e}") from e

    async def lookup(self, meal_id: str) -> MealFull:
        """Fetch the full record for one recipe id.

        Raises:
            CatalogError: Transport failure, malformed payload, or unknown id.
        """
        payload = await self._get_json("lookup.php", {"i": meal_id})
        meals = self._meals(payload)
        if not meals:
            raise CatalogError(f"Meal not found: {meal_id}")
        try:
            return MealFull.model_validate(meals[0])
        except ValueError as e:
            raise CatalogError(f"Malformed lookup result for {meal_id}: {e}") from e

    async def ping(self) -> bool:
        """Return True if the catalog answers a random-meal request."""
        try:
            await self._get_json("random.php")
            return True
        except CatalogError as e:
            logger.debug(f"Catalog ping failed: {e}")
            return False
