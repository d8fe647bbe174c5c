"""Two-step plan generation: rank the top hits, then plan the single best recipe.

Each model stage yields a StageOutcome; a contract violation or model failure is
logged and turns into a missing plan, never a request error. The plan stage only
ever sees one recipe, so its shopping list cannot blend ingredients across
candidates.
"""

from typing import Optional, Protocol, Sequence

from src.models.models import (
    CacheDocument,
    Hit,
    InterpretedQuery,
    Plan,
    PlanFragment,
    RankResponse,
)
from src.prompts.prompts import plan_prompt, rank_prompt
from src.utils.errors import ModelError
from src.utils.json_extract import StageOutcome, parse_model_output
from src.utils.logger import logger


class TextModel(Protocol):
    async def generate(self, prompt: str, max_tokens: int) -> str: ...


# Ingredients per candidate shown in the rank context
PREVIEW_INGREDIENTS = 8


def build_rank_context(candidates: Sequence[CacheDocument]) -> str:
    blocks = []
    for doc in candidates:
        blocks.append(
            f"Recipe: {doc.name} (ID: {doc.id})\n"
            f"Category: {doc.category or ''} | Area: {doc.area or ''}\n"
            f"IngredientCount: {doc.ingredient_count} | InstructionLength: {doc.instruction_length}\n"
            f"IngredientsPreview: {', '.join(doc.ingredients[:PREVIEW_INGREDIENTS])}\n"
        )
    return "\n---\n\n".join(blocks)


def build_plan_context(doc: CacheDocument) -> str:
    lines = [
        f"Recipe: {doc.name} (ID: {doc.id})",
        f"Category: {doc.category or ''} | Area: {doc.area or ''}",
        f"Instructions: {doc.instructions}",
        "Ingredients:",
    ]
    for ingredient, measure in zip(doc.ingredients, doc.measures):
        lines.append(f"- {ingredient} — {measure}" if measure.strip() else f"- {ingredient}")
    return "\n".join(lines)


def reconcile_sources(rank: RankResponse) -> list[str]:
    """Return sources consistent with the pick order.

    Empty sources are synthesized from the pick ids. Sources that are not an
    order-preserving prefix of the pick ids are replaced by the pick ids.
    """
    pick_ids = [pick.id for pick in rank.picks]
    if not rank.sources:
        return pick_ids
    if rank.sources == pick_ids[: len(rank.sources)]:
        return list(rank.sources)
    logger.warning(f"Rank sources {rank.sources} disagree with pick order {pick_ids}; using pick order")
    return pick_ids


def select_top_pick(
    rank: RankResponse,
    hits: Sequence[Hit],
    documents: dict[str, CacheDocument],
) -> Optional[CacheDocument]:
    """First ranked pick that is a known cached recipe, else the first hit."""
    for pick in rank.picks:
        if pick.id in documents:
            return documents[pick.id]
        logger.warning(f"Rank pick {pick.id} is not among the candidates, skipping")
    if hits and hits[0].id in documents:
        return documents[hits[0].id]
    return None


class PlanOrchestrator:
    """Runs the rank and plan model stages and merges their outputs."""

    def __init__(
        self,
        model: TextModel,
        rank_max_tokens: int = 320,
        plan_max_tokens: int = 600,
        rank_context_size: int = 5,
    ) -> None:
        self.model = model
        self.rank_max_tokens = rank_max_tokens
        self.plan_max_tokens = plan_max_tokens
        self.rank_context_size = rank_context_size

    async def _generate(self, prompt: str, max_tokens: int, stage: str) -> Optional[str]:
        try:
            return await self.model.generate(prompt, max_tokens)
        except ModelError as e:
            logger.warning(f"{stage} stage model call failed: {e}")
            return None

    async def rank_candidates(
        self,
        user_input: str,
        interpreted: InterpretedQuery,
        candidates: Sequence[CacheDocument],
    ) -> StageOutcome[RankResponse]:
        prompt = rank_prompt(
            user_input=user_input,
            ingredients=interpreted.ingredients,
            quick=interpreted.constraints.quick,
            not_spicy=interpreted.constraints.not_spicy,
            context=build_rank_context(candidates),
        )
        text = await self._generate(prompt, self.rank_max_tokens, "Rank")
        if text is None:
            return StageOutcome.failure("model call failed")
        outcome = parse_model_output(text, RankResponse)
        if not outcome.ok:
            logger.warning(f"Rank parse failed: {outcome.error}")
        return outcome

    async def plan_top_pick(self, interpreted: InterpretedQuery, top: CacheDocument) -> StageOutcome[PlanFragment]:
        prompt = plan_prompt(
            interpreted_json=interpreted.model_dump_json(by_alias=True),
            context=build_plan_context(top),
        )
        text = await self._generate(prompt, self.plan_max_tokens, "Plan")
        if text is None:
            return StageOutcome.failure("model call failed")
        outcome = parse_model_output(text, PlanFragment)
        if not outcome.ok:
            logger.warning(f"Plan parse failed for {top.id}: {outcome.error}")
        return outcome

    async def generate_plan(
        self,
        user_input: str,
        interpreted: InterpretedQuery,
        hits: Sequence[Hit],
        documents: dict[str, CacheDocument],
    ) -> Optional[Plan]:
        """Rank the top hits, plan the best one, and merge.

        Args:
            user_input: Raw user text.
            interpreted: Interpreted query.
            hits: Ordered hits from the ranking engine.
            documents: Cached documents keyed by id (hits are projections of these).

        Returns:
            The merged Plan, or None when there are no hits or either stage failed.
        """
        candidates = [documents[hit.id] for hit in hits[: self.rank_context_size] if hit.id in documents]
        if not candidates:
            logger.info("No hits to plan for")
            return None

        rank = await self.rank_candidates(user_input, interpreted, candidates)
        if not rank.ok:
            # Merged only when both stages succeed; skip the plan call
            return None

        top = select_top_pick(rank.value, hits, documents)
        if top is None:
            return None
        logger.info(f"Top pick: {top.name} ({top.id})")

        fragment = await self.plan_top_pick(interpreted, top)
        if not fragment.ok:
            return None

        return Plan(
            picks=rank.value.picks,
            shopping_list=fragment.value.shopping_list,
            timeline=fragment.value.timeline,
            sources=reconcile_sources(rank.value),
        )
