"""Builders and in-memory fakes for the catalog, cache and model."""

from typing import Sequence

from src.models.models import CacheDocument, MealFull, MealStub
from src.utils.errors import CacheStoreError, CatalogError


def make_doc(doc_id: str, name: str, ingredients: list[str], instruction_length: int = 100, **kwargs) -> CacheDocument:
    return CacheDocument(
        id=doc_id,
        name=name,
        ingredients=ingredients,
        measures=kwargs.pop("measures", ["1"] * len(ingredients)),
        instructions=kwargs.pop("instructions", "x" * instruction_length),
        ingredient_count=len(ingredients),
        instruction_length=instruction_length,
        **kwargs,
    )


def make_meal(meal_id: str, name: str, ingredients: list[tuple[str, str]], instructions: str = "Cook it.") -> MealFull:
    payload = {
        "idMeal": meal_id,
        "strMeal": name,
        "strCategory": "Chicken",
        "strArea": "Greek",
        "strInstructions": instructions,
        "strMealThumb": f"https://img.example/{meal_id}.jpg",
        "strSource": None,
    }
    for i in range(1, 21):
        ingredient, measure = ingredients[i - 1] if i <= len(ingredients) else ("", "")
        payload[f"strIngredient{i}"] = ingredient
        payload[f"strMeasure{i}"] = measure
    return MealFull.model_validate(payload)


class FakeCatalog:
    """In-memory catalog: per-ingredient id lists and full records by id."""

    def __init__(self, by_ingredient: dict[str, list[str]], meals: dict[str, MealFull] = None, failing: Sequence[str] = ()):
        self.by_ingredient = by_ingredient
        self.meals = meals or {}
        self.failing = set(failing)
        self.filter_calls: list[str] = []
        self.lookup_calls: list[str] = []

    async def filter_by_ingredient(self, ingredient: str) -> list[MealStub]:
        self.filter_calls.append(ingredient)
        if ingredient in self.failing:
            raise CatalogError(f"filter failed for {ingredient}")
        return [MealStub.model_validate({"idMeal": meal_id}) for meal_id in self.by_ingredient.get(ingredient, [])]

    async def lookup(self, meal_id: str) -> MealFull:
        self.lookup_calls.append(meal_id)
        if meal_id not in self.meals:
            raise CatalogError(f"Meal not found: {meal_id}")
        return self.meals[meal_id]


class FakeCache:
    """In-memory cache keyed by id with OR-semantics ingredient search."""

    index = "meals-test"

    def __init__(self, documents: Sequence[CacheDocument] = (), fail_exists=False, fail_upsert=False, fail_search=False):
        self.documents: dict[str, CacheDocument] = {doc.id: doc for doc in documents}
        self.fail_exists = fail_exists
        self.fail_upsert = fail_upsert
        self.fail_search = fail_search
        self.exists_calls: list[list[str]] = []
        self.upsert_calls: list[list[str]] = []
        self.search_calls: list[list[str]] = []

    async def exists_batch(self, ids):
        self.exists_calls.append(list(ids))
        if self.fail_exists:
            raise CacheStoreError("mget failed")
        return {meal_id: meal_id in self.documents for meal_id in ids}

    async def upsert_batch(self, documents):
        self.upsert_calls.append([doc.id for doc in documents])
        if self.fail_upsert:
            raise CacheStoreError("bulk failed")
        for doc in documents:
            self.documents[doc.id] = doc
        return len(documents)

    async def search_by_ingredients(self, ingredients, limit):
        self.search_calls.append(list(ingredients))
        if self.fail_search:
            raise CacheStoreError("search failed")
        wanted = set(ingredients)
        matches = [doc for doc in self.documents.values() if wanted & set(doc.ingredients)]
        return matches[:limit]


class ScriptedModel:
    """Returns canned responses in order; an Exception entry is raised instead."""

    def __init__(self, responses: Sequence):
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def generate(self, prompt: str, max_tokens: int) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
