"""Recipe Manager: REST backend for recipes, ingredients, units, steps and tags."""

__version__ = "1.0.0"
