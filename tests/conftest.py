"""Shared fixtures.

The module-level config validates at import time, so required variables are
seeded here before any src module is imported.
"""

import os

os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")

import pytest  # noqa: E402

from src.models.models import MealFull  # noqa: E402
from tests.helpers import FakeCatalog, make_meal  # noqa: E402


@pytest.fixture
def chicken_meals() -> dict[str, MealFull]:
    return {
        "52940": make_meal("52940", "Lemon Garlic Chicken", [("Chicken", "4 thighs"), ("Lemon", "1"), ("Garlic", "3 cloves")]),
        "52795": make_meal("52795", "Chicken Handi", [("Chicken", "1kg"), ("Garlic", "2 cloves"), ("Onion", "2"), ("Yogurt", "1 cup")]),
        "52772": make_meal("52772", "Teriyaki Chicken", [("Chicken", "500g"), ("Soy Sauce", "3 tbs")]),
        "52959": make_meal("52959", "Baked Salmon", [("Salmon", "2 fillets"), ("Lemon", "1")]),
        "53000": make_meal("53000", "Garlic Bread", [("Garlic", "4 cloves"), ("Bread", "1 loaf"), ("Butter", "50g")]),
    }


@pytest.fixture
def chicken_catalog(chicken_meals) -> FakeCatalog:
    return FakeCatalog(
        by_ingredient={
            "chicken": ["52795", "52940", "52772"],
            "lemon": ["52959", "52940"],
            "garlic": ["53000", "52940", "52795"],
        },
        meals=chicken_meals,
    )
