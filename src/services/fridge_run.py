"""Per-request orchestration: interpret -> gather -> sync cache -> rank -> plan.

Stages run strictly in order and share no state across requests; the cache
store owns its own consistency. Degradable failures shrink stats and hits,
fatal ones (interpretation, recipe lookup, cache write) propagate to the caller.
"""

import time
import uuid
from http import HTTPStatus
from typing import Optional

from src.clients.elasticsearch import ElasticsearchCache
from src.clients.interpreter import IngredientInterpreter
from src.clients.mealdb import MealDBClient
from src.models.models import FridgeRunResponse, FridgeRunResult, IngestStats
from src.pipeline.cache_sync import sync_cache
from src.pipeline.candidates import clamp_max, gather_candidates
from src.pipeline.planner import PlanOrchestrator
from src.pipeline.ranking import rank_hits
from src.utils.logger import logger, request_id_var


class FridgeRunService:
    """Produces a FridgeRunResult for one free-text ingredient list."""

    def __init__(
        self,
        interpreter: IngredientInterpreter,
        catalog: MealDBClient,
        cache: ElasticsearchCache,
        planner: PlanOrchestrator,
        default_max: int = 25,
        max_limit: int = 50,
        search_size: int = 25,
        max_hits: int = 10,
    ) -> None:
        self.interpreter = interpreter
        self.catalog = catalog
        self.cache = cache
        self.planner = planner
        self.default_max = default_max
        self.max_limit = max_limit
        self.search_size = search_size
        self.max_hits = max_hits

    async def run(self, user_input: str, max_candidates: Optional[int] = None) -> FridgeRunResult:
        """Run the full pipeline.

        Args:
            user_input: Free-text list of available ingredients.
            max_candidates: Candidate bound (None -> default, clamped to [1, max_limit]).

        Returns:
            FridgeRunResult with status 200, or 400 when no ingredients were interpreted.

        Raises:
            InterpretationError: The interpreter failed.
            CatalogError: A missing recipe could not be fetched.
            CacheStoreError: Newly fetched recipes could not be written.
        """
        token = request_id_var.set(uuid.uuid4().hex)
        started = time.perf_counter()
        try:
            interpreted = await self.interpreter.interpret(user_input)
            index = self.cache.index

            if not interpreted.ingredients:
                logger.info("No ingredients interpreted, rejecting as bad input")
                return FridgeRunResult(
                    status=HTTPStatus.BAD_REQUEST,
                    body=FridgeRunResponse(index=index, interpreted=interpreted, ingest=IngestStats()),
                )

            bound = clamp_max(max_candidates, self.default_max, self.max_limit)
            selection = await gather_candidates(self.catalog, interpreted.ingredients, bound)
            report = await sync_cache(self.cache, self.catalog, selection.chosen_ids)
            ranked = await rank_hits(self.cache, interpreted.ingredients, self.search_size, self.max_hits)
            plan = await self.planner.generate_plan(user_input, interpreted, ranked.hits, ranked.documents)

            ingest = IngestStats(
                candidates=selection.candidates,
                selected=selection.selected,
                already_indexed=report.already_indexed,
                lookups=report.lookups,
                indexed=report.indexed,
            )
            logger.info(
                f"Run finished in {(time.perf_counter() - started) * 1000:.0f}ms: "
                f"{len(ranked.hits)} hits, plan={'yes' if plan else 'no'}"
            )
            return FridgeRunResult(
                status=HTTPStatus.OK,
                body=FridgeRunResponse(
                    index=index,
                    interpreted=interpreted,
                    ingest=ingest,
                    hits=ranked.hits,
                    plan=plan,
                ),
            )
        finally:
            request_id_var.reset(token)
