"""Default image lookup: a coloured placeholder keyed by meal type."""

from typing import Callable, Union
from urllib.parse import quote

from recipe_pipeline.models.models import MealType


# (title, meal_type) -> opaque image reference; the pipeline never inspects the result
ImageLookup = Callable[[str, MealType], str]

PLACEHOLDER_BASE_URL = "https://via.placeholder.com/400x300"
DEFAULT_COLOR = "10b981"

MEAL_TYPE_COLORS = {
    MealType.BREAKFAST: "f59e0b",
    MealType.LUNCH: "3b82f6",
    MealType.DINNER: "ef4444",
    MealType.SNACK: "a855f7",
}


def meal_type_color(meal_type: Union[MealType, str, None]) -> str:
    """Hex colour (without ``#``) for a meal type; unknown types get the default green."""
    try:
        return MEAL_TYPE_COLORS.get(MealType(meal_type), DEFAULT_COLOR)
    except ValueError:
        return DEFAULT_COLOR


def placeholder_image(title: str, meal_type: Union[MealType, str, None]) -> str:
    """Build a placeholder image URL with the recipe title as its caption.

    The title is truncated to 50 characters and percent-encoded the way
    browsers' ``encodeURIComponent`` does.
    """
    caption = quote(title[:50], safe="-_.!~*'()")
    return f"{PLACEHOLDER_BASE_URL}/{meal_type_color(meal_type)}/ffffff?text={caption}"
