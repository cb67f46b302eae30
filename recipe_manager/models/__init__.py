"""Database models for the recipe manager."""

from .base import Base, CreatedAtMixin, TimestampMixin, utcnow
from .recipe import Recipe, TOTAL_TIME_EXPRESSION
from .ingredient import Ingredient, MeasurementSystem, MeasurementUnit, RecipeIngredient
from .step import RecipeStep
from .tag import Tag, recipe_tags

__all__ = [
    # Base
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "utcnow",
    # Aggregate root and owned rows
    "Recipe",
    "TOTAL_TIME_EXPRESSION",
    "RecipeIngredient",
    "RecipeStep",
    "recipe_tags",
    # Shared reference rows
    "Ingredient",
    "MeasurementSystem",
    "MeasurementUnit",
    "Tag",
]
