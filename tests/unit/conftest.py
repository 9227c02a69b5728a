"""Shared fixtures for unit tests."""

import copy

import pytest

from recipe_pipeline.utils.config import Config


VALID_RECIPE = {
    "title": "Greek Yogurt Parfait",
    "description": "Layered yogurt with berries and oats",
    "mealType": "BREAKFAST",
    "prepTime": 5,
    "cookTime": 0,
    "servings": 1,
    "difficulty": "Easy",
    "ingredients": [
        {"name": "Greek yogurt", "amount": 1, "unit": "cup", "optional": False},
        {"name": "blueberries", "amount": "1/2", "unit": "cup", "optional": False},
        {"name": "honey", "amount": 1, "unit": "tsp", "optional": True},
    ],
    "instructions": ["Spoon yogurt into a glass", "Top with berries and honey"],
    "nutrition": {"calories": 220, "protein": 18, "carbs": 30, "fat": 4},
    "tags": ["high-protein", "quick"],
}


def make_recipe(**overrides) -> dict:
    """Return a fresh valid recipe candidate with the given top-level overrides."""
    recipe = copy.deepcopy(VALID_RECIPE)
    recipe.update(overrides)
    return recipe


@pytest.fixture
def valid_recipe() -> dict:
    return make_recipe()


@pytest.fixture
def pipeline_config(monkeypatch) -> Config:
    """Config with deterministic values: auto selection, no OpenAI key, no retry delay."""
    for name in ("OLLAMA_BASE_URL", "OLLAMA_MODEL", "OPENAI_BASE_URL", "OPENAI_MODEL", "MAX_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AI_PROVIDER", "auto")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("RETRY_DELAY_SECONDS", "0")
    cfg = Config()
    cfg.validate()
    return cfg


@pytest.fixture
def recipe_factory():
    """Factory fixture: ``recipe_factory(**overrides)`` builds a valid candidate dict."""
    return make_recipe
