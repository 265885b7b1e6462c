"""
Recipe payloads returned by the recipe data provider.

`ingredients` and `steps` arrive as comma-joined strings.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


def split_field(value: str) -> List[str]:
    """Split a comma-joined field and trim each item, dropping empties."""
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Recipe(BaseModel):
    id: Optional[int] = None
    name: str
    chef: str = ""
    family: Optional[str] = None
    ingredients: str = ""
    steps: str = ""
    photo: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def ingredient_list(self) -> List[str]:
        return split_field(self.ingredients)

    @property
    def step_list(self) -> List[str]:
        return split_field(self.steps)


class RecipeCategory(BaseModel):
    category_name: str


class RecipeDetail(BaseModel):
    """A recipe together with its category names."""

    recipe: Recipe
    categories: List[str] = Field(default_factory=list)
