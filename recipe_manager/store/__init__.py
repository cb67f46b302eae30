"""Recipe aggregate persistence: reference resolution, assembly and the repository."""

from .assembler import assemble, summarize
from .deadline import Deadline
from .recipe_store import RecipeStore
from .resolver import (
    DEFAULT_UNIT_SYSTEM,
    ReferenceKind,
    resolve,
    resolve_ingredient,
    resolve_tag,
    resolve_unit,
)

__all__ = [
    "assemble",
    "summarize",
    "Deadline",
    "RecipeStore",
    "DEFAULT_UNIT_SYSTEM",
    "ReferenceKind",
    "resolve",
    "resolve_ingredient",
    "resolve_tag",
    "resolve_unit",
]
