"""Candidate discovery against the upstream catalog.

One filter-by-ingredient query per distinct ingredient; ids are ranked by how
many of those queries returned them (overlap count), ties broken by id.
"""

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from src.models.models import MealStub
from src.utils.errors import safe_execute_async
from src.utils.logger import logger


DEFAULT_MAX = 25
MAX_LIMIT = 50


class IngredientCatalog(Protocol):
    async def filter_by_ingredient(self, ingredient: str) -> list[MealStub]: ...


@dataclass
class CandidateSelection:
    """Bounded, deterministically ordered candidate set for one request."""

    chosen_ids: list[str] = field(default_factory=list)
    overlap: dict[str, int] = field(default_factory=dict)
    candidates: int = 0

    @property
    def selected(self) -> int:
        return len(self.chosen_ids)


def clamp_max(requested: Optional[int], default: int = DEFAULT_MAX, limit: int = MAX_LIMIT) -> int:
    """Resolve the per-request candidate bound: None -> default, else clamp to [1, limit]."""
    if requested is None:
        return default
    return max(1, min(limit, requested))


def select_candidates(per_ingredient: Sequence[set[str]], max_results: int) -> CandidateSelection:
    """Union the per-ingredient id sets and keep the top ids by overlap count.

    Order: overlap count descending, then id ascending. The result does not
    depend on the order of the input sets.
    """
    overlap: Counter[str] = Counter()
    for ids in per_ingredient:
        overlap.update(ids)

    ranked = sorted(overlap.items(), key=lambda item: (-item[1], item[0]))
    return CandidateSelection(
        chosen_ids=[meal_id for meal_id, _ in ranked[:max_results]],
        overlap=dict(overlap),
        candidates=len(overlap),
    )


async def _ids_for_ingredient(catalog: IngredientCatalog, ingredient: str) -> set[str]:
    meals = await safe_execute_async(
        catalog.filter_by_ingredient(ingredient),
        f"Catalog filter for '{ingredient}' (contributing no candidates)",
        default_return=[],
    )
    return {meal.id_meal for meal in meals}


async def gather_candidates(
    catalog: IngredientCatalog,
    ingredients: Sequence[str],
    max_results: int,
) -> CandidateSelection:
    """Query the catalog per distinct ingredient and select the bounded candidate set.

    A failed or empty catalog response for one ingredient contributes nothing and
    never aborts the request. The per-ingredient calls are independent and run
    concurrently; overlap counting is commutative so the result is unaffected.

    Args:
        catalog: Catalog client exposing filter_by_ingredient().
        ingredients: Interpreted ingredient names (duplicates ignored).
        max_results: Already-clamped candidate bound.

    Returns:
        CandidateSelection with chosen_ids, overlap counts and the union size.
    """
    distinct = list(dict.fromkeys(ingredients))
    per_ingredient = await asyncio.gather(*(_ids_for_ingredient(catalog, name) for name in distinct))

    for name, ids in zip(distinct, per_ingredient):
        logger.debug(f"Ingredient '{name}': {len(ids)} catalog recipes")

    selection = select_candidates(per_ingredient, max_results)
    logger.info(
        f"Candidates: {selection.candidates} unique across {len(distinct)} ingredients, "
        f"selected {selection.selected} (max={max_results})"
    )
    return selection
