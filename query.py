#!/usr/bin/env python3
"""Ad hoc runner for the recipe generation pipeline.

Generate recipes directly from the command line against the configured
provider (local Ollama, or OpenAI when Ollama is unreachable).

Usage:
    python query.py --goal weight_loss
    python query.py --goal muscle_gain --goal general_health --count 3
    python query.py --goal weight_loss "high protein breakfast without eggs"
    python query.py --debug --goal competition_prep  # Show full JSON result
    python query.py --status  # Show provider status and installed models

Features:
- Streams progress dots while the model is generating
- Recipes rendered as markdown
- Debug mode to display the full result including filtered candidates
- Clean exit after completion (exit code 1 on failure)
"""

import asyncio
import sys

from rich.console import Console
from rich.markdown import Markdown

from recipe_pipeline.models.errors import RecipeGenerationError
from recipe_pipeline.models.models import GenerationRequest, HealthGoal, Recipe
from recipe_pipeline.pipeline.service import GenerationService
from recipe_pipeline.utils.config import config
from recipe_pipeline.utils.logger import logger

console = Console()

USAGE = 'Usage: python query.py [--debug] [--status] [--goal GOAL]... [--count N] ["custom description"]'


def format_recipe(recipe: Recipe) -> str:
    """Render one recipe as markdown."""
    lines = [
        f"## {recipe.title}",
        "",
        f"*{recipe.meal_type.value.title()} · {recipe.difficulty.value} · "
        f"prep {recipe.prep_time} min · cook {recipe.cook_time} min · serves {recipe.servings}*",
        "",
        recipe.description,
        "",
        "### Ingredients",
    ]
    for ingredient in recipe.ingredients:
        unit = f" {ingredient.unit}" if ingredient.unit else ""
        optional = " (optional)" if ingredient.optional else ""
        lines.append(f"- {ingredient.amount:g}{unit} {ingredient.name}{optional}")

    lines += ["", "### Instructions"]
    lines += [f"{i}. {step}" for i, step in enumerate(recipe.instructions, start=1)]

    n = recipe.nutrition
    lines += [
        "",
        f"**Nutrition:** {n.calories:g} kcal · protein {n.protein:g}g · carbs {n.carbs:g}g · fat {n.fat:g}g",
    ]
    if recipe.tags:
        lines.append(f"**Tags:** {', '.join(recipe.tags)}")
    return "\n".join(lines)


async def show_status() -> None:
    service = GenerationService()
    status = await service.provider_status()
    console.print_json(data=status.model_dump(mode="json"))


async def run_query(request: GenerationRequest, debug: bool = False) -> None:
    """Generate recipes for a request and print them.

    Args:
        request: Generation request built from the command line.
        debug: If True, display the full JSON result.
    """
    service = GenerationService()

    def on_progress(fragment: str) -> None:
        console.print(".", end="", style="dim", highlight=False)

    logger.info(f"Generating {request.count} recipes for: {', '.join(g.value for g in request.health_goals)}")
    if request.custom_description:
        logger.info(f"Description: {request.custom_description}")
    logger.info("---")

    result = await service.generate(request, on_progress=on_progress)

    console.print()
    logger.info("---")
    console.print()

    if debug:
        console.print("[bold cyan]Debug Mode: Full Result[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print_json(data=result.model_dump(mode="json", by_alias=True))
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print()

    for recipe in result.recipes:
        console.print(Markdown(format_recipe(recipe)))
        console.print()

    summary = f"[green]✓ {len(result.recipes)} recipes from {result.provider.value} in {result.attempts} attempt(s)"
    if result.rejected:
        summary += f", {len(result.rejected)} filtered"
    console.print(summary + "[/green]")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print(f"Goals: {', '.join(g.value for g in HealthGoal)}")
        print("")
        print("Examples:")
        print("  python query.py --goal weight_loss")
        print("  python query.py --goal muscle_gain --count 3 \"quick vegetarian dinners\"")
        print("  python query.py --debug --goal general_health")
        print("  python query.py --status")
        sys.exit(1)

    debug_mode = False
    status_mode = False
    goals = []
    count = config.DEFAULT_RECIPE_COUNT
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        flag = sys.argv[argv_start]
        if flag == "--debug":
            debug_mode = True
            argv_start += 1
        elif flag == "--status":
            status_mode = True
            argv_start += 1
        elif flag in ("--goal", "--count"):
            argv_start += 1
            if argv_start >= len(sys.argv):
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            if flag == "--goal":
                goals.append(sys.argv[argv_start])
            else:
                count = sys.argv[argv_start]
            argv_start += 1
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)

    try:
        if status_mode:
            asyncio.run(show_status())
            sys.exit(0)

        description = " ".join(sys.argv[argv_start:]) or None
        request = GenerationRequest(
            user_id="cli",
            health_goals=goals or [HealthGoal.GENERAL_HEALTH],
            count=count,
            custom_description=description,
        )
        asyncio.run(run_query(request, debug=debug_mode))
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except RecipeGenerationError as e:
        logger.error(f"Recipe generation failed ({type(e).__name__}): {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)
