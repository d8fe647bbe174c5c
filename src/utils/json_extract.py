"""Coercion of free-form model text into validated pydantic models.

The model is instructed to emit one JSON object, but its raw text can still carry
commentary or formatting around the payload. The first balanced object is cut out
by brace depth (both plan schemas nest objects, so first-{ to last-} is wrong),
parsed, and validated. Every failure becomes a StageOutcome rather than an exception.
"""

import json
from dataclasses import dataclass
from typing import Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError


T = TypeVar("T", bound=BaseModel)


class JSONExtractionError(ValueError):
    pass


def extract_first_json_object(text: str) -> str:
    """Return the first brace-balanced object in text.

    Raises:
        JSONExtractionError: No "{" in text, or the first object never closes.
    """
    start = text.find("{")
    if start == -1:
        raise JSONExtractionError("No JSON found in model output")

    depth = 0
    for i in range(start, len(text)):
        char = text[i]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    raise JSONExtractionError("Unclosed JSON object in model output")


@dataclass(frozen=True)
class StageOutcome(Generic[T]):
    """Success (value set) or recoverable failure (error set) of one model stage."""

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None

    @classmethod
    def success(cls, value: T) -> "StageOutcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "StageOutcome[T]":
        return cls(error=error)


def parse_model_output(text: str, schema: Type[T]) -> StageOutcome[T]:
    """Extract, decode and validate model text against schema."""
    try:
        raw = extract_first_json_object(text)
    except JSONExtractionError as e:
        return StageOutcome.failure(str(e))

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        return StageOutcome.failure(f"Invalid JSON: {e}")

    try:
        return StageOutcome.success(schema.model_validate(data))
    except ValidationError as e:
        return StageOutcome.failure(
            f"{schema.__name__} validation failed ({e.error_count()} errors): "
            f"{e.errors(include_url=False)[0]['msg']}"
        )
