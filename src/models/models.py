"""Data models and schemas for the fridge planning service.

Defines Pydantic models for catalog payloads, cached recipe documents, model
output contracts (rank / plan stages) and the request/response envelope.
All models use Pydantic v2. Wire names are camelCase (the cache documents, the
model's JSON output and the API all use them); Python attributes are snake_case.
"""

from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# Number of parallel strIngredientN / strMeasureN slots in a catalog record
CATALOG_INGREDIENT_SLOTS = 20


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# Interpretation
# ============================================================================


class Constraints(CamelModel):
    """Boolean cooking constraints detected in the user's text."""

    quick: bool = False
    not_spicy: bool = False


class InterpretedQuery(CamelModel):
    """Normalized ingredient names plus constraints (consumed read-only by the pipeline)."""

    ingredients: List[str] = Field(default_factory=list)
    constraints: Constraints = Field(default_factory=Constraints)

    @field_validator("ingredients", mode="before")
    @classmethod
    def normalize_ingredients(cls, v) -> list[str]:
        """Lowercase, trim, replace '_' with space and de-duplicate (first occurrence wins)."""
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("ingredients must be a list")

        normalized: list[str] = []
        for item in v:
            if not isinstance(item, str):
                raise ValueError("ingredients must be strings")
            name = " ".join(item.replace("_", " ").lower().split())
            if name and name not in normalized:
                normalized.append(name)
        return normalized


# ============================================================================
# Recipe catalog (TheMealDB payloads)
# ============================================================================


class MealStub(BaseModel):
    """One row of a filter-by-ingredient response."""

    id_meal: str = Field(alias="idMeal")
    str_meal: Optional[str] = Field(None, alias="strMeal")
    str_meal_thumb: Optional[str] = Field(None, alias="strMealThumb")

    @field_validator("id_meal", mode="before")
    @classmethod
    def coerce_id(cls, v) -> str:
        return str(v)


class MealFull(BaseModel):
    """Full catalog record from a lookup-by-id response.

    The 20 ingredient/measure slots are kept as extra fields and read through
    ingredient_pairs().
    """

    model_config = ConfigDict(extra="allow")

    id_meal: str = Field(alias="idMeal")
    str_meal: str = Field(alias="strMeal")
    str_category: Optional[str] = Field(None, alias="strCategory")
    str_area: Optional[str] = Field(None, alias="strArea")
    str_instructions: Optional[str] = Field(None, alias="strInstructions")
    str_meal_thumb: Optional[str] = Field(None, alias="strMealThumb")
    str_source: Optional[str] = Field(None, alias="strSource")
    str_youtube: Optional[str] = Field(None, alias="strYoutube")

    @field_validator("id_meal", mode="before")
    @classmethod
    def coerce_id(cls, v) -> str:
        return str(v)

    def ingredient_pairs(self) -> list[tuple[str, str]]:
        """Collapse the parallel slots into ordered (ingredient, measure) pairs.

        Ingredient names are trimmed and lowercased; measures are trimmed.
        Slots with a blank ingredient are dropped.
        """
        extra = self.model_extra or {}
        pairs: list[tuple[str, str]] = []
        for i in range(1, CATALOG_INGREDIENT_SLOTS + 1):
            ingredient = (extra.get(f"strIngredient{i}") or "").strip()
            if not ingredient:
                continue
            measure = (extra.get(f"strMeasure{i}") or "").strip()
            pairs.append((ingredient.lower(), measure))
        return pairs


# ============================================================================
# Recipe cache
# ============================================================================


class CacheDocument(CamelModel):
    """Canonical stored form of a recipe, keyed by id in the cache."""

    id: str
    name: str
    category: Optional[str] = None
    area: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    measures: List[str] = Field(default_factory=list)
    instructions: str = ""
    thumbnail_url: Optional[str] = None
    source_url: Optional[str] = None
    youtube_url: Optional[str] = None
    ingredient_count: int = 0
    instruction_length: int = 0
    created_at: Optional[str] = None
    last_seen_at: Optional[str] = None

    @model_validator(mode="after")
    def check_parallel_lists(self) -> "CacheDocument":
        if len(self.ingredients) != len(self.measures):
            raise ValueError(
                f"ingredients and measures must be index-aligned, got "
                f"{len(self.ingredients)} ingredients and {len(self.measures)} measures"
            )
        return self


# Fields fetched by ranking-time searches
CACHE_SOURCE_FIELDS = [
    "id",
    "name",
    "category",
    "area",
    "ingredients",
    "measures",
    "instructions",
    "thumbnailUrl",
    "sourceUrl",
    "ingredientCount",
    "instructionLength",
    "createdAt",
    "lastSeenAt",
]


class Hit(CamelModel):
    """Ranking-time projection of a cached recipe."""

    id: str
    name: str
    match: int
    ingredient_count: int
    instruction_length: int
    category: Optional[str] = None
    area: Optional[str] = None
    thumbnail_url: Optional[str] = None
    source_url: Optional[str] = None


# ============================================================================
# Model output contracts
# ============================================================================


class Pick(CamelModel):
    """One ranked recommendation from the rank stage."""

    id: str
    name: str
    simplicity_score: Annotated[float, Field(ge=0, le=10)]
    why: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v) -> str:
        if isinstance(v, (int, str)) and not isinstance(v, bool):
            return str(v).strip()
        raise ValueError("id must be a string or integer")


class ShoppingList(CamelModel):
    """Shopping list grouped into the six fixed categories, items as "name — quantity"."""

    produce: List[str] = Field(default_factory=list)
    pantry: List[str] = Field(default_factory=list)
    protein: List[str] = Field(default_factory=list)
    dairy: List[str] = Field(default_factory=list)
    spices: List[str] = Field(default_factory=list)
    optional: List[str] = Field(default_factory=list)

    @field_validator("produce", "pantry", "protein", "dairy", "spices", "optional", mode="before")
    @classmethod
    def drop_blank_items(cls, v):
        if v is None:
            return []
        if isinstance(v, list):
            return [
                item.strip() if isinstance(item, str) else item
                for item in v
                if not (isinstance(item, str) and not item.strip())
            ]
        return v


class TimelineStep(CamelModel):
    from_min: int
    to_min: int
    step: str

    @model_validator(mode="after")
    def check_interval(self) -> "TimelineStep":
        if not self.from_min < self.to_min:
            raise ValueError(f"timeline step must satisfy fromMin < toMin, got {self.from_min}..{self.to_min}")
        return self


class RankResponse(CamelModel):
    """Rank stage output: picks best-first and their ids in the same order."""

    picks: List[Pick]
    sources: List[str] = Field(default_factory=list)

    @field_validator("sources", mode="before")
    @classmethod
    def coerce_sources(cls, v):
        if v is None:
            return []
        if isinstance(v, list):
            return [str(item).strip() if isinstance(item, (int, str)) else item for item in v]
        return v


class PlanFragment(CamelModel):
    """Plan stage output for the single top-pick recipe."""

    shopping_list: ShoppingList
    timeline: Annotated[List[TimelineStep], Field(min_length=1)]

    @field_validator("timeline")
    @classmethod
    def check_chronological(cls, v: list[TimelineStep]) -> list[TimelineStep]:
        for previous, current in zip(v, v[1:]):
            if current.from_min < previous.from_min:
                raise ValueError(
                    f"timeline start times must be non-decreasing, got {previous.from_min} then {current.from_min}"
                )
        return v


class Plan(CamelModel):
    """Merged plan. Only built when both model stages succeeded."""

    picks: List[Pick]
    shopping_list: ShoppingList
    timeline: List[TimelineStep]
    sources: List[str] = Field(default_factory=list)


# ============================================================================
# Request / response envelope
# ============================================================================


class IngestStats(CamelModel):
    candidates: int = 0
    selected: int = 0
    already_indexed: int = 0
    lookups: int = 0
    indexed: int = 0


class InterpretRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    input: Annotated[str, Field(max_length=2000, description="Free-text list of available ingredients")]


class FridgeRunRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    input: Annotated[str, Field(max_length=2000, description="Free-text list of available ingredients")]
    max: Annotated[
        Optional[int],
        Field(description="Maximum catalog candidates to ingest (clamped to 1-50, default 25)"),
    ] = None


class FridgeRunResponse(CamelModel):
    """Response envelope: interpretation, ingestion stats, hits and the optional plan."""

    index: str
    interpreted: InterpretedQuery
    ingest: IngestStats
    hits: List[Hit] = Field(default_factory=list)
    plan: Optional[Plan] = None


class FridgeRunResult(BaseModel):
    """Service outcome: HTTP-style status plus body (400 marks bad input)."""

    status: int
    body: FridgeRunResponse

    @property
    def bad_input(self) -> bool:
        return self.status == 400


class DependencyStatus(CamelModel):
    url: str
    ok: bool


class HealthResponse(CamelModel):
    status: str
    elasticsearch: DependencyStatus
    model: DependencyStatus
    mealdb: DependencyStatus
