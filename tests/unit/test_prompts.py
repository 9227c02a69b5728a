"""Unit tests for recipe prompt construction."""

import pytest

from recipe_pipeline.models.models import HealthGoal, MealType
from recipe_pipeline.prompts.prompts import (
    GENERIC_GOAL_PHRASE,
    GOAL_PHRASES,
    build_recipe_prompt,
    describe_goals,
)


class TestDescribeGoals:
    """Test goal tag to guidance phrase mapping."""

    @pytest.mark.parametrize("goal", list(HealthGoal))
    def test_every_known_goal_has_a_phrase(self, goal):
        assert describe_goals([goal]) == GOAL_PHRASES[goal.value]

    def test_plain_string_tags_are_accepted(self):
        assert describe_goals(["muscle_gain"]) == GOAL_PHRASES["muscle_gain"]

    def test_unknown_tag_maps_to_generic_phrase(self):
        """Test unknown tags degrade gracefully instead of failing."""
        assert describe_goals(["keto"]) == GENERIC_GOAL_PHRASE

    def test_multiple_goals_joined_in_order(self):
        description = describe_goals([HealthGoal.WEIGHT_LOSS, "unknown"])
        assert description == f"{GOAL_PHRASES['weight_loss']}, {GENERIC_GOAL_PHRASE}"


class TestBuildRecipePrompt:
    """Test the full instruction string."""

    def test_prompt_states_count_and_goals(self):
        prompt = build_recipe_prompt([HealthGoal.WEIGHT_LOSS], 3)

        assert "Generate 3 unique, healthy recipes" in prompt
        assert "Generate 3 recipes now" in prompt
        assert GOAL_PHRASES["weight_loss"] in prompt

    def test_prompt_contains_json_only_contract(self):
        prompt = build_recipe_prompt([HealthGoal.GENERAL_HEALTH], 6)

        assert "respond with ONLY a valid JSON object" in prompt
        assert '"recipes": [' in prompt
        assert prompt.endswith("Remember: ONLY JSON, no other text.")

    def test_prompt_without_options_has_no_request_section(self):
        prompt = build_recipe_prompt([HealthGoal.GENERAL_HEALTH], 6)

        assert "The user describes" not in prompt
        assert "Do NOT use" not in prompt
        assert "Diverse meal types" in prompt

    def test_custom_description_included_verbatim(self):
        description = 'spicy "street-style" tacos, no dairy'
        prompt = build_recipe_prompt([HealthGoal.MUSCLE_GAIN], 2, custom_description=description)

        assert description in prompt

    def test_meal_type_restriction(self):
        prompt = build_recipe_prompt([HealthGoal.MUSCLE_GAIN], 2, meal_type=MealType.DINNER)

        assert '"mealType": "DINNER"' in prompt
        assert "Diverse meal types" not in prompt

    def test_exclusions_listed(self):
        prompt = build_recipe_prompt(
            [HealthGoal.WEIGHT_LOSS], 2, exclude_ingredients=["peanuts", "shellfish"]
        )

        assert "Do NOT use any of these ingredients: peanuts, shellfish." in prompt
