"""Turn validated recipe drafts into domain ``Recipe`` entities."""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from recipe_pipeline.models.models import GenerationRequest, Recipe, RecipeDraft
from recipe_pipeline.pipeline.images import ImageLookup, placeholder_image


def new_recipe_id() -> str:
    return f"ai-{uuid.uuid4().hex}"


def assemble_recipes(
    drafts: List[RecipeDraft],
    request: GenerationRequest,
    image_lookup: ImageLookup = placeholder_image,
    now: Optional[datetime] = None,
) -> List[Recipe]:
    """Attach identity, ownership and an image to each draft.

    Pure transformation: order is preserved and nothing here can fail on
    a valid draft.

    Args:
        drafts: Validated drafts in model order.
        request: Originating request (owner and health goals).
        image_lookup: Collaborator mapping (title, meal type) to an image reference.
        now: Generation timestamp; defaults to the current UTC time. Shared by the whole batch.

    Returns:
        List[Recipe]: One recipe per draft.
    """
    generated_at = now or datetime.now(timezone.utc)
    recipes = []
    for draft in drafts:
        recipes.append(
            Recipe(
                **draft.model_dump(),
                id=new_recipe_id(),
                user_id=request.user_id,
                health_goals=list(request.health_goals),
                is_favorite=False,
                is_ai_generated=True,
                generated_at=generated_at,
                image=image_lookup(draft.title, draft.meal_type),
            )
        )
    return recipes
