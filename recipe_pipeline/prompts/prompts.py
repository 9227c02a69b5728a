"""Prompts for health-goal recipe generation.

Provides a factory function that turns a user's health goals (plus optional
free-text description, meal type and exclusions) into a single instruction
string. The instruction embeds a strict "JSON only" output contract that the
content extractor and sanitizer downstream rely on.
"""

from typing import Iterable, Optional

from recipe_pipeline.models.models import HealthGoal, MealType


# One guidance phrase per known goal; anything else gets GENERIC_GOAL_PHRASE
GOAL_PHRASES: dict[str, str] = {
    HealthGoal.WEIGHT_LOSS.value: (
        "weight loss (focus on low calorie, high protein, high fiber recipes around 300-450 calories)"
    ),
    HealthGoal.MUSCLE_GAIN.value: "muscle building (focus on high protein 25-40g, moderate carbs for energy)",
    HealthGoal.COMPETITION_PREP.value: "athletic performance (balanced macros, optimal timing, energy-dense)",
    HealthGoal.GENERAL_HEALTH.value: "balanced nutrition and wellness (variety of nutrients, whole foods)",
}

GENERIC_GOAL_PHRASE = "healthy eating"

# System message for chat-style providers
SYSTEM_PROMPT = (
    "You are a nutrition expert and chef. Generate healthy recipes that align with the user's "
    "health goals. You always answer with a single JSON object and nothing else."
)

JSON_FORMAT_EXAMPLE = """{
  "recipes": [
    {
      "title": "Specific Recipe Name",
      "description": "Brief 1-2 sentence description highlighting benefits",
      "mealType": "BREAKFAST",
      "prepTime": 15,
      "cookTime": 20,
      "servings": 2,
      "difficulty": "Easy",
      "ingredients": [
        {"name": "ingredient name", "amount": 1.5, "unit": "cup"},
        {"name": "another ingredient", "amount": 2, "unit": "tbsp"}
      ],
      "instructions": [
        "First step with specific details",
        "Second step with timing if needed",
        "Third step, etc."
      ],
      "nutrition": {
        "calories": 380,
        "protein": 25,
        "carbs": 45,
        "fat": 12
      },
      "tags": ["high-protein", "quick", "meal-prep"]
    }
  ]
}"""


def describe_goals(health_goals: Iterable[HealthGoal | str]) -> str:
    """Map goal tags to their guidance phrases, joined with commas.

    Unknown tags map to a generic phrase instead of failing.
    """
    phrases = []
    for goal in health_goals:
        key = goal.value if isinstance(goal, HealthGoal) else str(goal)
        phrases.append(GOAL_PHRASES.get(key, GENERIC_GOAL_PHRASE))
    return ", ".join(phrases) or GENERIC_GOAL_PHRASE


def _get_request_section(
    custom_description: Optional[str],
    meal_type: Optional[MealType | str],
    exclude_ingredients: Optional[Iterable[str]],
) -> str:
    """Generate the user-specific section (description, meal type, exclusions).

    Returns an empty string when none of them is set.
    """
    lines = []
    if custom_description:
        lines.append(f'The user describes what they want as: "{custom_description}"')
        lines.append("Every recipe must match this description while still serving the health goals.")
    if meal_type:
        value = meal_type.value if isinstance(meal_type, MealType) else str(meal_type)
        lines.append(f'Every recipe must use "mealType": "{value}".')
    excluded = [item for item in (exclude_ingredients or []) if item]
    if excluded:
        lines.append(f"Do NOT use any of these ingredients: {', '.join(excluded)}.")
    if not lines:
        return ""
    return "\n".join(lines) + "\n\n"


def _get_requirements_section(meal_type: Optional[MealType | str]) -> str:
    meal_rule = (
        "1. Meal type: use only the meal type requested above"
        if meal_type
        else "1. Diverse meal types: Mix of BREAKFAST, LUNCH, DINNER, and SNACK"
    )
    return f"""Requirements:
{meal_rule}
2. Difficulty levels: Include Easy, Medium, and Hard recipes
3. Realistic times: Prep time 5-30 minutes, Cook time 0-60 minutes
4. Common ingredients: Use accessible, everyday ingredients
5. Accurate nutrition: Calculate realistic calorie and macro values
6. Clear instructions: 4-8 numbered steps, be specific
7. Numbers only: "amount", "prepTime", "cookTime", "servings" and every nutrition value must be plain JSON numbers (write 0.5, not "1/2")
"""


def build_recipe_prompt(
    health_goals: Iterable[HealthGoal | str],
    count: int,
    custom_description: Optional[str] = None,
    meal_type: Optional[MealType | str] = None,
    exclude_ingredients: Optional[Iterable[str]] = None,
) -> str:
    """Build the single instruction string sent to the model.

    Args:
        health_goals: Goal tags; known ones are expanded into guidance phrases.
        count: Number of recipes to ask for (stated literally in the prompt).
        custom_description: Free text included verbatim when present.
        meal_type: Optional meal type every recipe must use.
        exclude_ingredients: Optional ingredients the recipes must avoid.

    Returns:
        str: Complete prompt with the JSON-only output contract.
    """
    goal_descriptions = describe_goals(health_goals)

    return f"""You are a professional nutritionist and chef. Generate {count} unique, healthy recipes for someone with these health goals: {goal_descriptions}.

CRITICAL: You must respond with ONLY a valid JSON object. No markdown, no explanation, no code blocks. Just pure JSON.

{_get_request_section(custom_description, meal_type, exclude_ingredients)}{_get_requirements_section(meal_type)}
JSON Format (respond with ONLY this structure):
{JSON_FORMAT_EXAMPLE}

Generate {count} recipes now in this exact JSON format. Remember: ONLY JSON, no other text."""
