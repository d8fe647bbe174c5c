"""Ingredient interpreter: free text -> InterpretedQuery via one model call."""

from src.clients.gemini import GeminiModel
from src.models.models import InterpretedQuery
from src.prompts.prompts import interpret_prompt
from src.utils.errors import InterpretationError, ModelError
from src.utils.json_extract import parse_model_output
from src.utils.logger import logger


class IngredientInterpreter:
    """Turns user text into normalized ingredient names plus constraints."""

    def __init__(self, model: GeminiModel, max_tokens: int = 120) -> None:
        self.model = model
        self.max_tokens = max_tokens

    async def interpret(self, text: str) -> InterpretedQuery:
        """Interpret user text.

        Blank text yields an empty query without calling the model.

        Raises:
            InterpretationError: Model call failed or its output did not match the schema.
        """
        if not text or not text.strip():
            return InterpretedQuery()

        try:
            raw = await self.model.generate(interpret_prompt(text.strip()), self.max_tokens)
        except ModelError as e:
            raise InterpretationError(f"Interpreter model call failed: {e}") from e

        outcome = parse_model_output(raw, InterpretedQuery)
        if not outcome.ok:
            raise InterpretationError(f"Interpreter output rejected: {outcome.error}")

        interpreted = outcome.value
        logger.info(
            f"Interpreted {len(interpreted.ingredients)} ingredients: {interpreted.ingredients} "
            f"(quick={interpreted.constraints.quick}, notSpicy={interpreted.constraints.not_spicy})"
        )
        return interpreted
