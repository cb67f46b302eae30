"""Rebuild the in-memory recipe aggregate from its normalized rows."""

import uuid

from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import (
    Ingredient,
    MeasurementUnit,
    Recipe,
    RecipeIngredient,
    RecipeStep,
    Tag,
    recipe_tags,
)
from ..schemas import (
    MeasurementUnitSchema,
    RecipeIngredientSchema,
    RecipeSchema,
    RecipeStepSchema,
    TagSchema,
)
from .deadline import Deadline


def summarize(recipe: Recipe) -> RecipeSchema:
    """Scalar fields only; the collections stay empty."""
    return RecipeSchema.model_validate(recipe)


def load_ingredients(db_session: Session, recipe_id: uuid.UUID) -> list[RecipeIngredientSchema]:
    """Ingredient lines in sort order, each with its unit when one is linked.

    Lines sharing a sort_order come back by ingredient name.
    """
    rows = (
        db_session.query(RecipeIngredient, Ingredient, MeasurementUnit)
        .join(Ingredient, RecipeIngredient.ingredient_id == Ingredient.id)
        .outerjoin(MeasurementUnit, RecipeIngredient.unit_id == MeasurementUnit.id)
        .filter(RecipeIngredient.recipe_id == recipe_id)
        .order_by(RecipeIngredient.sort_order.asc(), Ingredient.name.asc())
        .all()
    )
    return [
        RecipeIngredientSchema(
            ingredient_id=ingredient.id,
            ingredient_name=ingredient.name,
            ingredient_category=ingredient.category,
            quantity=ri.quantity,
            notes=ri.notes,
            sort_order=ri.sort_order,
            unit=MeasurementUnitSchema.model_validate(unit) if unit is not None else None,
        )
        for ri, ingredient, unit in rows
    ]


def load_steps(db_session: Session, recipe_id: uuid.UUID) -> list[RecipeStepSchema]:
    steps = (
        db_session.query(RecipeStep)
        .filter(RecipeStep.recipe_id == recipe_id)
        .order_by(RecipeStep.step_number.asc())
        .all()
    )
    return [RecipeStepSchema.model_validate(step) for step in steps]


def load_tags(db_session: Session, recipe_id: uuid.UUID) -> list[TagSchema]:
    tags = (
        db_session.query(Tag)
        .join(recipe_tags, recipe_tags.c.tag_id == Tag.id)
        .filter(recipe_tags.c.recipe_id == recipe_id)
        .order_by(Tag.name.asc())
        .all()
    )
    return [TagSchema.model_validate(tag) for tag in tags]


def assemble(
    db_session: Session, recipe_id: uuid.UUID, deadline: Deadline | None = None
) -> RecipeSchema:
    """Read a recipe and its ingredients, steps and tags into one RecipeSchema.

    Read-only; safe to call repeatedly and from concurrent sessions.

    Raises:
        NotFoundError: If no recipe has this id.
        OperationTimeout: If `deadline` passes before the last query.
    """
    deadline = deadline or Deadline()
    deadline.check("get", recipe_id)
    recipe = db_session.query(Recipe).filter(Recipe.id == recipe_id).first()
    if recipe is None:
        raise NotFoundError(f"recipe with ID {recipe_id} not found", recipe_id=recipe_id)

    aggregate = summarize(recipe)
    deadline.check("get", recipe_id)
    aggregate.ingredients = load_ingredients(db_session, recipe_id)
    deadline.check("get", recipe_id)
    aggregate.steps = load_steps(db_session, recipe_id)
    deadline.check("get", recipe_id)
    aggregate.tags = load_tags(db_session, recipe_id)
    return aggregate
