"""Data models and schemas for the recipe generation pipeline.

Defines Pydantic models for the generation request, the validated recipe
content recovered from model output (``RecipeDraft``) and the final domain
entity handed to callers (``Recipe``). All models use Pydantic v2.

Recipe models read and write the application's camelCase wire names
(``mealType``, ``prepTime``, ...) and also accept snake_case field names.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from recipe_pipeline.utils.config import config


# Untyped recipe-shaped object recovered from raw model output, before validation
ParsedRecipeCandidate = dict[str, Any]


class HealthGoal(str, Enum):
    """Health goals a user can select; each one steers the prompt differently."""

    WEIGHT_LOSS = "weight_loss"
    MUSCLE_GAIN = "muscle_gain"
    COMPETITION_PREP = "competition_prep"
    GENERAL_HEALTH = "general_health"


class MealType(str, Enum):
    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"
    SNACK = "SNACK"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class ProviderKind(str, Enum):
    """Backends the transport can talk to."""

    OLLAMA = "ollama"
    OPENAI = "openai"


def _require_number(value: Any) -> float | int:
    """Accept JSON numbers only: strings and booleans are rejected, never coerced."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValueError("must be a finite number")
    return value


class GenerationRequest(BaseModel):
    """Immutable input to one generation call.

    Health goals are de-duplicated preserving order. ``count`` defaults to
    DEFAULT_RECIPE_COUNT and may not exceed MAX_RECIPE_COUNT.
    """

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    user_id: Annotated[str, Field(min_length=1, max_length=200, description="Owner identity stamped on each recipe")]
    health_goals: Annotated[
        List[HealthGoal], Field(min_length=1, description="Selected health goals (at least one)")
    ]
    count: Annotated[
        int,
        Field(default_factory=lambda: config.DEFAULT_RECIPE_COUNT, ge=1, description="Number of recipes to request"),
    ]
    custom_description: Annotated[
        Optional[str],
        Field(max_length=2000, description="Free-text description of the dish the user wants"),
    ] = None
    meal_type: Annotated[Optional[MealType], Field(description="Restrict every recipe to one meal type")] = None
    exclude_ingredients: Annotated[
        List[str], Field(default_factory=list, max_length=50, description="Ingredients the recipes must avoid")
    ]

    @field_validator("health_goals")
    @classmethod
    def dedupe_goals(cls, goals: List[HealthGoal]) -> List[HealthGoal]:
        return list(dict.fromkeys(goals))

    @field_validator("count")
    @classmethod
    def check_count_limit(cls, count: int) -> int:
        if count > config.MAX_RECIPE_COUNT:
            raise ValueError(f"count must be at most {config.MAX_RECIPE_COUNT}, got {count}")
        return count

    @field_validator("custom_description")
    @classmethod
    def empty_description_to_none(cls, description: Optional[str]) -> Optional[str]:
        return description or None

    @field_validator("exclude_ingredients")
    @classmethod
    def drop_blank_exclusions(cls, items: List[str]) -> List[str]:
        return [item.strip() for item in items if item and item.strip()]


class Ingredient(BaseModel):
    """One ingredient line. ``amount`` is always a finite, non-negative number."""

    model_config = ConfigDict(str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True)

    name: Annotated[str, Field(min_length=1)]
    amount: Annotated[float, Field(ge=0, allow_inf_nan=False)]
    unit: str = ""
    optional: bool = False

    @field_validator("amount", mode="before")
    @classmethod
    def amount_is_number(cls, value: Any) -> float:
        return float(_require_number(value))

    @field_validator("unit", mode="before")
    @classmethod
    def missing_unit_to_empty(cls, value: Any) -> Any:
        # Count-based ingredients ("2 eggs") come back without a unit
        return "" if value is None else value


class Nutrition(BaseModel):
    """Per-serving nutrition. Macros in grams, sodium in milligrams."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    calories: Annotated[float, Field(ge=0)]
    protein: Annotated[float, Field(ge=0)]
    carbs: Annotated[float, Field(ge=0)]
    fat: Annotated[float, Field(ge=0)]
    fiber: Annotated[Optional[float], Field(ge=0)] = None
    sodium: Annotated[Optional[float], Field(ge=0)] = None

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def macros_are_numbers(cls, value: Any) -> float:
        return float(_require_number(value))

    @field_validator("fiber", "sodium", mode="before")
    @classmethod
    def optional_numbers(cls, value: Any) -> Optional[float]:
        if value is None:
            return None
        return float(_require_number(value))


class RecipeDraft(BaseModel):
    """Validated recipe content recovered from model output, without identity.

    Produced only by ``validate_candidate``; turned into a ``Recipe`` by the
    entity assembler.
    """

    model_config = ConfigDict(str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True)

    title: Annotated[str, Field(min_length=1)]
    description: Annotated[str, Field(min_length=1)]
    meal_type: MealType
    prep_time: Annotated[int, Field(ge=0, description="Minutes")]
    cook_time: Annotated[int, Field(ge=0, description="Minutes")]
    servings: Annotated[int, Field(ge=1)]
    difficulty: Difficulty
    ingredients: Annotated[List[Ingredient], Field(min_length=1)]
    instructions: Annotated[List[str], Field(min_length=1)]
    nutrition: Nutrition
    tags: Annotated[List[str], Field(default_factory=list)]

    @field_validator("prep_time", "cook_time", "servings", mode="before")
    @classmethod
    def whole_minutes(cls, value: Any) -> int:
        return int(round(_require_number(value)))

    @field_validator("instructions", mode="before")
    @classmethod
    def drop_blank_steps(cls, steps: Any) -> Any:
        if not isinstance(steps, list):
            return steps
        return [step for step in steps if not (isinstance(step, str) and not step.strip())]

    @field_validator("tags", mode="before")
    @classmethod
    def tags_default_to_list(cls, tags: Any) -> List[str]:
        if not isinstance(tags, list):
            return []
        return [tag.strip() for tag in tags if isinstance(tag, str) and tag.strip()]


class Recipe(RecipeDraft):
    """Domain recipe entity returned to callers."""

    id: Annotated[str, Field(min_length=1, description="Opaque unique identifier")]
    user_id: Annotated[str, Field(min_length=1)]
    health_goals: List[HealthGoal]
    is_favorite: bool = False
    is_ai_generated: bool = True
    generated_at: datetime
    image: str


class RejectedCandidate(BaseModel):
    """Diagnostic record for a candidate dropped during validation."""

    index: Annotated[int, Field(ge=0, description="Position in the model's recipes array")]
    title: Optional[str] = None
    reasons: List[str] = Field(default_factory=list)


class GenerationResult(BaseModel):
    """Outcome of a successful generation call.

    ``rejected`` lets callers tell "some candidates were filtered" apart from
    a clean batch; an all-rejected batch raises ``NoValidRecipesError`` instead.
    """

    recipes: Annotated[List[Recipe], Field(min_length=1)]
    rejected: List[RejectedCandidate] = Field(default_factory=list)
    provider: ProviderKind
    attempts: Annotated[int, Field(ge=1)]


class ProviderStatus(BaseModel):
    provider: Optional[ProviderKind] = None
    available: bool = False
    models: List[str] = Field(default_factory=list)
