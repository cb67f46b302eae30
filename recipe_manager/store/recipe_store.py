"""Create, read, update and delete of the full recipe aggregate.

Each mutating operation runs in exactly one transaction: the recipe row, every
name resolution and every junction row are committed together or not at all.
After a successful write the aggregate is re-read so the caller sees exactly
what storage holds, generated columns included.

Concurrent updates of the same recipe are not serialized here; the last
transaction to commit wins.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..database import get_session_factory, session_scope
from ..errors import (
    ConflictError,
    NotFoundError,
    RecipeStoreError,
    StorageFault,
    is_unique_violation,
)
from ..models import Recipe, RecipeIngredient, RecipeStep, recipe_tags, utcnow
from ..schemas import RecipeRequest, RecipeSchema
from .assembler import assemble, summarize
from .deadline import Deadline
from .resolver import resolve_ingredient, resolve_tag, resolve_unit

logger = logging.getLogger(__name__)


def _scalar_fields(request: RecipeRequest) -> dict:
    return {
        "title": request.title,
        "description": request.description,
        "photo_filename": request.photo_filename,
        "serves": request.serves,
        "prep_time_minutes": request.prep_time_minutes,
        "cook_time_minutes": request.cook_time_minutes,
        "created_by": request.created_by,
    }


def _flush(db_session: Session, what: str) -> None:
    """Flush pending rows, naming the row in the error if storage rejects it."""
    try:
        db_session.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise ConflictError(f"duplicate {what}") from exc
        raise StorageFault(f"failed to insert {what}: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        raise StorageFault(f"failed to insert {what}: {exc}") from exc


class RecipeStore:
    """Repository for the recipe aggregate.

    Stateless apart from the session factory; every call acquires and
    releases its own session.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory or get_session_factory()

    @contextmanager
    def _transaction(
        self, operation: str, recipe_id: uuid.UUID | None
    ) -> Generator[Session, None, None]:
        """One transaction with errors translated into the store taxonomy.

        Whatever escapes the block has already been rolled back by
        session_scope; this only adds context and logs it once.
        """
        try:
            with session_scope(self._session_factory) as db_session:
                yield db_session
        except RecipeStoreError as exc:
            exc.operation = exc.operation or operation
            exc.recipe_id = exc.recipe_id or recipe_id
            self._log_failure(exc)
            raise
        except IntegrityError as exc:
            error_cls = ConflictError if is_unique_violation(exc) else StorageFault
            error = error_cls(str(exc.orig), operation=operation, recipe_id=recipe_id)
            self._log_failure(error)
            raise error from exc
        except SQLAlchemyError as exc:
            error = StorageFault(str(exc), operation=operation, recipe_id=recipe_id)
            self._log_failure(error)
            raise error from exc

    @staticmethod
    def _log_failure(exc: RecipeStoreError) -> None:
        if isinstance(exc, StorageFault):
            logger.error(f"Recipe {exc.operation} failed (recipe_id={exc.recipe_id}): {exc.message}")
        else:
            logger.warning(f"Recipe {exc.operation} rejected (recipe_id={exc.recipe_id}): {exc.message}")

    def _write_children(
        self,
        db_session: Session,
        recipe_id: uuid.UUID,
        request: RecipeRequest,
        deadline: Deadline,
        operation: str,
    ) -> None:
        """Insert ingredient lines, steps and tag links for one recipe, in request order."""
        for line in request.ingredients:
            deadline.check(operation, recipe_id)
            ingredient_id = resolve_ingredient(db_session, line.ingredient_name)
            unit_id = None
            if line.unit_name is not None and line.unit_name.strip():
                unit_id = resolve_unit(db_session, line.unit_name)
            db_session.add(
                RecipeIngredient(
                    id=uuid.uuid4(),
                    recipe_id=recipe_id,
                    ingredient_id=ingredient_id,
                    quantity=line.quantity,
                    unit_id=unit_id,
                    notes=line.notes,
                    sort_order=line.sort_order,
                )
            )
            _flush(db_session, f"ingredient '{line.ingredient_name}'")

        for step in request.steps:
            deadline.check(operation, recipe_id)
            db_session.add(
                RecipeStep(
                    id=uuid.uuid4(),
                    recipe_id=recipe_id,
                    step_number=step.step_number,
                    instruction=step.instruction,
                    duration_minutes=step.duration_minutes,
                    temperature=step.temperature,
                )
            )
            _flush(db_session, f"step {step.step_number}")

        linked: set[uuid.UUID] = set()
        for tag in request.tags:
            deadline.check(operation, recipe_id)
            tag_id = resolve_tag(db_session, tag.name)
            if tag_id in linked:
                continue
            try:
                db_session.execute(recipe_tags.insert().values(recipe_id=recipe_id, tag_id=tag_id))
            except IntegrityError as exc:
                raise StorageFault(f"failed to link tag '{tag.name}': {exc.orig}") from exc
            linked.add(tag_id)

    def create(self, request: RecipeRequest, timeout: float | None = None) -> RecipeSchema:
        """Store a new recipe with its ingredients, steps and tags.

        Raises:
            ConflictError: On a duplicate ingredient or step number.
            OperationTimeout: If `timeout` seconds pass before commit.
            StorageFault: On any other database failure.
        """
        deadline = Deadline(timeout)
        recipe_id = uuid.uuid4()
        with self._transaction("create", recipe_id) as db_session:
            deadline.check("create", recipe_id)
            db_session.add(Recipe(id=recipe_id, **_scalar_fields(request)))
            _flush(db_session, f"recipe '{request.title}'")
            self._write_children(db_session, recipe_id, request, deadline, "create")
            deadline.check("create", recipe_id)

        logger.info(
            f"Created recipe {recipe_id} '{request.title}': {len(request.ingredients)} ingredients, "
            f"{len(request.steps)} steps, {len(request.tags)} tags"
        )
        return self.get(recipe_id)

    def get(self, recipe_id: uuid.UUID, timeout: float | None = None) -> RecipeSchema:
        """Full aggregate for one recipe.

        Raises:
            NotFoundError: If no recipe has this id.
            OperationTimeout: If `timeout` seconds pass before every row is read.
        """
        deadline = Deadline(timeout)
        with self._transaction("get", recipe_id) as db_session:
            return assemble(db_session, recipe_id, deadline)

    def list(self, timeout: float | None = None) -> list[RecipeSchema]:
        """All recipes, most recently updated first, without their collections."""
        deadline = Deadline(timeout)
        with self._transaction("list", None) as db_session:
            deadline.check("list", None)
            recipes = db_session.query(Recipe).order_by(Recipe.updated_at.desc()).all()
            return [summarize(recipe) for recipe in recipes]

    def update(
        self, recipe_id: uuid.UUID, request: RecipeRequest, timeout: float | None = None
    ) -> RecipeSchema:
        """Replace a recipe's scalar fields and all of its collections.

        Ingredients, steps or tags missing from the request are gone afterwards.

        Raises:
            NotFoundError: If no recipe has this id.
            ConflictError: On a duplicate ingredient or step number.
            OperationTimeout: If `timeout` seconds pass before commit.
            StorageFault: On any other database failure.
        """
        deadline = Deadline(timeout)
        with self._transaction("update", recipe_id) as db_session:
            deadline.check("update", recipe_id)
            matched = (
                db_session.query(Recipe)
                .filter(Recipe.id == recipe_id)
                .update({**_scalar_fields(request), "updated_at": utcnow()}, synchronize_session=False)
            )
            if matched == 0:
                raise NotFoundError(f"recipe with ID {recipe_id} not found for update")

            db_session.query(RecipeIngredient).filter(
                RecipeIngredient.recipe_id == recipe_id
            ).delete(synchronize_session=False)
            db_session.query(RecipeStep).filter(RecipeStep.recipe_id == recipe_id).delete(
                synchronize_session=False
            )
            db_session.execute(recipe_tags.delete().where(recipe_tags.c.recipe_id == recipe_id))

            self._write_children(db_session, recipe_id, request, deadline, "update")
            deadline.check("update", recipe_id)

        logger.info(f"Updated recipe {recipe_id} '{request.title}'")
        return self.get(recipe_id)

    def delete(self, recipe_id: uuid.UUID, timeout: float | None = None) -> None:
        """Delete a recipe; its junction rows go with it through ON DELETE CASCADE.

        Raises:
            NotFoundError: If no recipe has this id.
        """
        deadline = Deadline(timeout)
        with self._transaction("delete", recipe_id) as db_session:
            deadline.check("delete", recipe_id)
            deleted = (
                db_session.query(Recipe)
                .filter(Recipe.id == recipe_id)
                .delete(synchronize_session=False)
            )
            if deleted == 0:
                raise NotFoundError(f"recipe with ID {recipe_id} not found for deletion")

        logger.info(f"Deleted recipe {recipe_id}")
