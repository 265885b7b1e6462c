"""Build the narrated segment sequence for a recipe."""

from typing import Tuple

from recipes.models import Recipe
from .phrases import Phrasebook


def build_segments(recipe: Recipe, phrasebook: Phrasebook) -> Tuple[str, ...]:
    """Intro, ingredients and steps as three separate segments."""
    fields = {
        "name": recipe.name,
        "chef": recipe.chef,
        "family": recipe.family or "",
        "ingredients": ", ".join(recipe.ingredient_list),
        "steps": ", ".join(recipe.step_list),
    }
    return (
        phrasebook.intro.format(**fields),
        phrasebook.ingredients.format(**fields),
        phrasebook.steps.format(**fields),
    )
