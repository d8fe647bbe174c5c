"""Relevance ranking over the recipe cache."""

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from src.models.models import CacheDocument, Hit
from src.utils.errors import safe_execute_async
from src.utils.logger import logger


class RecipeSearch(Protocol):
    async def search_by_ingredients(self, ingredients: Sequence[str], limit: int) -> list[CacheDocument]: ...


@dataclass
class RankedHits:
    hits: list[Hit] = field(default_factory=list)
    documents: dict[str, CacheDocument] = field(default_factory=dict)


def score_documents(ingredients: Sequence[str], documents: Sequence[CacheDocument], limit: int = 10) -> list[Hit]:
    """Score and order documents against the interpreted ingredients.

    match = number of interpreted ingredients present in the recipe; the first
    interpreted ingredient (the primary one) adds a boost of 1. Order: score desc,
    match desc, ingredientCount asc, instructionLength asc. sorted() is stable, so
    documents equal on all four keys keep their search order.
    """
    query = list(dict.fromkeys(ingredients))
    primary = query[0] if query else None

    scored: list[tuple[int, Hit]] = []
    for doc in documents:
        recipe_ingredients = set(doc.ingredients)
        match = sum(1 for name in query if name in recipe_ingredients)
        boost = 1 if primary is not None and primary in recipe_ingredients else 0
        hit = Hit(
            id=doc.id,
            name=doc.name,
            match=match,
            ingredient_count=doc.ingredient_count,
            instruction_length=doc.instruction_length,
            category=doc.category,
            area=doc.area,
            thumbnail_url=doc.thumbnail_url,
            source_url=doc.source_url,
        )
        scored.append((match + boost, hit))

    scored.sort(key=lambda pair: (-pair[0], -pair[1].match, pair[1].ingredient_count, pair[1].instruction_length))
    return [hit for _, hit in scored[:limit]]


async def rank_hits(
    cache: RecipeSearch,
    ingredients: Sequence[str],
    search_size: int = 25,
    limit: int = 10,
) -> RankedHits:
    """Search the cache for any of the ingredients and return the ordered top hits.

    A failed search degrades to no hits.
    """
    documents = await safe_execute_async(
        cache.search_by_ingredients(list(dict.fromkeys(ingredients)), search_size),
        "Cache search (continuing with no hits)",
        default_return=[],
    )
    hits = score_documents(ingredients, documents, limit)
    logger.info(f"Ranking: {len(documents)} cached matches, returning top {len(hits)}")
    return RankedHits(hits=hits, documents={doc.id: doc for doc in documents})
