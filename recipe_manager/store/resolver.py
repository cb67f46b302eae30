"""Find-or-create resolution of ingredient, unit and tag names.

Reference rows are shared by every recipe, so two requests can introduce the
same new name at the same time. The insert runs inside a SAVEPOINT: when it
loses the race on the unique name constraint only the savepoint is rolled
back, the winner's row is re-read and its id returned. The enclosing
transaction stays usable either way.
"""

import enum
import logging
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import (
    ConflictError,
    RecipeStoreError,
    RecipeValidationError,
    ResolutionError,
    is_unique_violation,
)
from ..models import Ingredient, MeasurementSystem, MeasurementUnit, Tag

logger = logging.getLogger(__name__)

# Create requests only carry a unit name, so new units land in this system.
DEFAULT_UNIT_SYSTEM = MeasurementSystem.METRIC


class ReferenceKind(str, enum.Enum):
    """Kinds of shared reference rows a recipe points at by name."""

    INGREDIENT = "ingredient"
    UNIT = "unit"
    TAG = "tag"


REFERENCE_MODELS = {
    ReferenceKind.INGREDIENT: Ingredient,
    ReferenceKind.UNIT: MeasurementUnit,
    ReferenceKind.TAG: Tag,
}


def _find_id(db_session: Session, model, name: str) -> uuid.UUID | None:
    return db_session.query(model.id).filter(model.name == name).scalar()


def _new_row(kind: ReferenceKind, name: str):
    if kind is ReferenceKind.UNIT:
        return MeasurementUnit(id=uuid.uuid4(), name=name, system=DEFAULT_UNIT_SYSTEM)
    return REFERENCE_MODELS[kind](id=uuid.uuid4(), name=name)


def resolve(db_session: Session, kind: ReferenceKind | str, name: str) -> uuid.UUID:
    """Return the id of the reference row called `name`, creating it if needed.

    Args:
        db_session: Session with an open transaction; nothing is committed here.
        kind: Which reference table to look in.
        name: Exact, case-sensitive display name.

    Raises:
        RecipeValidationError: If the name is blank.
        ConflictError: If an insert hit the unique constraint but no row
            with that name is visible afterwards.
        ResolutionError: On any other storage failure.
    """
    kind = ReferenceKind(kind)
    if name is None or not name.strip():
        raise RecipeValidationError(f"{kind.value} name must not be blank")

    model = REFERENCE_MODELS[kind]
    try:
        existing_id = _find_id(db_session, model, name)
        if existing_id is not None:
            return existing_id

        row = _new_row(kind, name)
        try:
            with db_session.begin_nested():
                db_session.add(row)
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            # Someone else created it between our lookup and our insert
            winner_id = _find_id(db_session, model, name)
            if winner_id is None:
                raise ConflictError(
                    f"{kind.value} '{name}' conflicts with a concurrent insert",
                    kind=kind.value,
                    name=name,
                ) from exc
            logger.info(f"Lost create race for {kind.value} '{name}', using {winner_id}")
            return winner_id

        logger.debug(f"Created {kind.value} '{name}' with id {row.id}")
        return row.id
    except RecipeStoreError:
        raise
    except SQLAlchemyError as exc:
        raise ResolutionError(
            f"failed to resolve {kind.value} '{name}': {exc}", kind=kind.value, name=name
        ) from exc


def resolve_ingredient(db_session: Session, name: str) -> uuid.UUID:
    return resolve(db_session, ReferenceKind.INGREDIENT, name)


def resolve_unit(db_session: Session, name: str) -> uuid.UUID:
    return resolve(db_session, ReferenceKind.UNIT, name)


def resolve_tag(db_session: Session, name: str) -> uuid.UUID:
    return resolve(db_session, ReferenceKind.TAG, name)
