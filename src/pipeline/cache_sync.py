"""Cache-aware ingestion: fetch and index only the candidates the cache lacks.

A failed existence check degrades to "everything is missing" and re-ingests;
a failed detail lookup or batch write aborts the request.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence

from src.models.models import CacheDocument, MealFull
from src.utils.errors import safe_execute_async
from src.utils.logger import logger


class RecipeLookup(Protocol):
    async def lookup(self, meal_id: str) -> MealFull: ...


class RecipeCacheWriter(Protocol):
    async def exists_batch(self, ids: Sequence[str]) -> dict[str, bool]: ...

    async def upsert_batch(self, documents: Sequence[CacheDocument]) -> int: ...


@dataclass
class SyncReport:
    found_ids: list[str] = field(default_factory=list)
    missing_ids: list[str] = field(default_factory=list)
    indexed: int = 0

    @property
    def already_indexed(self) -> int:
        return len(self.found_ids)

    @property
    def lookups(self) -> int:
        return len(self.missing_ids)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_meal(meal: MealFull, timestamp: str) -> CacheDocument:
    """Convert a catalog record into its cache document, stamping both timestamps."""
    pairs = meal.ingredient_pairs()
    instructions = meal.str_instructions or ""
    return CacheDocument(
        id=meal.id_meal,
        name=meal.str_meal,
        category=meal.str_category,
        area=meal.str_area,
        ingredients=[ingredient for ingredient, _ in pairs],
        measures=[measure for _, measure in pairs],
        instructions=instructions,
        thumbnail_url=meal.str_meal_thumb,
        source_url=meal.str_source,
        youtube_url=meal.str_youtube,
        ingredient_count=len(pairs),
        instruction_length=len(instructions),
        created_at=timestamp,
        last_seen_at=timestamp,
    )


def _log_detached_write(write: "asyncio.Future[int]") -> None:
    """Report the outcome of a batch write whose request was cancelled."""
    if write.cancelled():
        logger.warning("Cache write cancelled after its request was cancelled")
        return
    error = write.exception()
    if error is not None:
        logger.error(f"Cache write failed after its request was cancelled: {error}")


def partition_ids(chosen_ids: Sequence[str], exists: Optional[dict[str, bool]]) -> tuple[list[str], list[str]]:
    """Split ids into (found, missing). No existence data means all missing.

    Ids the existence reply does not mention count as missing, so the two lists
    always partition chosen_ids.
    """
    if exists is None:
        return [], list(chosen_ids)
    found = [meal_id for meal_id in chosen_ids if exists.get(meal_id, False)]
    missing = [meal_id for meal_id in chosen_ids if not exists.get(meal_id, False)]
    return found, missing


async def sync_cache(
    cache: RecipeCacheWriter,
    catalog: RecipeLookup,
    chosen_ids: Sequence[str],
    now: Optional[datetime] = None,
) -> SyncReport:
    """Ensure every chosen recipe is in the cache.

    Args:
        cache: Cache adapter (exists_batch, upsert_batch).
        catalog: Catalog client (lookup).
        chosen_ids: Candidate ids from the gatherer.
        now: Clock override for the document timestamps.

    Returns:
        SyncReport with found/missing ids and the number of documents written.

    Raises:
        CatalogError: A missing recipe could not be fetched.
        CacheStoreError: The batch write failed.
    """
    if not chosen_ids:
        return SyncReport()

    exists = await safe_execute_async(
        cache.exists_batch(chosen_ids),
        "Cache existence check (treating all candidates as missing)",
        default_return=None,
    )
    found_ids, missing_ids = partition_ids(chosen_ids, exists)
    logger.info(f"Cache: {len(found_ids)} already indexed, {len(missing_ids)} to look up")

    timestamp = utc_timestamp(now)
    documents: list[CacheDocument] = []
    for meal_id in missing_ids:
        meal = await catalog.lookup(meal_id)
        documents.append(normalize_meal(meal, timestamp))

    indexed = 0
    if documents:
        # A cancelled request must not abort a write already in flight
        write = asyncio.ensure_future(cache.upsert_batch(documents))
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            write.add_done_callback(_log_detached_write)
            raise
        indexed = len(documents)
        logger.info(f"Indexed {indexed} new recipes")

    return SyncReport(found_ids=found_ids, missing_ids=missing_ids, indexed=indexed)
