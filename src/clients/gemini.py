"""Gemini text generation client.

Single-shot, deterministic (temperature 0) calls with a JSON response hint.
The output is still treated as untrusted free text by callers.
"""

import asyncio
from typing import Optional

from google import genai
from google.genai import types

from src.utils.errors import ModelError
from src.utils.logger import logger


class GeminiModel:
    """Thin async wrapper over the google-genai client."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.0,
        thinking_budget: Optional[int] = 0,
        timeout_seconds: float = 300,
        client: Optional[genai.Client] = None,
    ) -> None:
        """Initialize the model client.

        Args:
            api_key: Gemini API key.
            model: Model id, e.g. "gemini-2.5-flash".
            temperature: Sampling temperature (0.0 for deterministic decoding).
            thinking_budget: Thinking token budget (0 disables thinking, -1 dynamic, None
                leaves the model default). Thinking tokens share max_tokens.
            timeout_seconds: Per-call timeout; model calls are the slowest pipeline step.
            client: Pre-built genai.Client (tests inject a mock).

        Raises:
            ValueError: If api_key or model is empty.
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required")
        if not model:
            raise ValueError("GEMINI_MODEL is required")

        self.model = model
        self.temperature = temperature
        self.thinking_budget = thinking_budget
        self.timeout_seconds = timeout_seconds
        self.client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )

    def _generation_config(self, max_tokens: int) -> types.GenerateContentConfig:
        thinking_config = None
        if self.thinking_budget is not None:
            thinking_config = types.ThinkingConfig(thinking_budget=self.thinking_budget)
        return types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json",
            thinking_config=thinking_config,
        )

    async def generate(self, prompt: str, max_tokens: int) -> str:
        """Generate raw text for a prompt.

        Args:
            prompt: Full prompt text.
            max_tokens: Output token budget.

        Returns:
            Raw model text (expected, not guaranteed, to hold one JSON object).

        Raises:
            ModelError: API failure, timeout, or empty response.
        """
        try:
            # The sync client runs in a worker thread; wait_for bounds it even if the SDK stalls
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.models.generate_content,
                    model=self.model,
                    contents=prompt,
                    config=self._generation_config(max_tokens),
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ModelError(f"Gemini call timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            raise ModelError(f"Gemini call failed: {e}") from e

        text = getattr(response, "text", None)
        if not text:
            raise ModelError("Gemini returned an empty response")
        logger.debug(f"Gemini response ({len(text)} chars, max_tokens={max_tokens})")
        return text

    async def ping(self) -> bool:
        """Return True if the configured model is reachable."""
        try:
            await asyncio.wait_for(asyncio.to_thread(self.client.models.get, model=self.model), timeout=10)
            return True
        except Exception as e:
            logger.debug(f"Gemini ping failed: {e}")
            return False
