"""Ingredient and measurement unit reference models, plus the recipe junction table."""

import enum
import uuid

from sqlalchemy import (
    CheckConstraint,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin


class MeasurementSystem(str, enum.Enum):
    """Measurement system a unit belongs to."""

    METRIC = "metric"
    IMPERIAL = "imperial"


class Ingredient(Base, CreatedAtMixin):
    """Single source of truth for each unique ingredient name.

    Names match exactly (case-sensitive); "Feta" and "feta" are two rows.
    """

    __tablename__ = "ingredients"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<Ingredient(id={self.id}, name='{self.name}')>"


class MeasurementUnit(Base):
    """Unit of measurement, optionally convertible to a base unit."""

    __tablename__ = "measurement_units"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    abbreviation: Mapped[str | None] = mapped_column(String(20), nullable=True)
    system: Mapped[MeasurementSystem] = mapped_column(
        Enum(
            MeasurementSystem,
            name="measurement_system",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    base_unit_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("measurement_units.id"), nullable=True
    )
    conversion_factor: Mapped[float | None] = mapped_column(
        Numeric(10, 6, asdecimal=False), nullable=True
    )

    def __repr__(self) -> str:
        return f"<MeasurementUnit(id={self.id}, name='{self.name}', system={self.system.value})>"


class RecipeIngredient(Base):
    """Junction table linking recipes to ingredients with quantity and unit."""

    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        UniqueConstraint("recipe_id", "ingredient_id", name="uq_recipe_ingredients_recipe_ingredient"),
        CheckConstraint("quantity IS NULL OR quantity > 0", name="ck_recipe_ingredients_quantity"),
        CheckConstraint("sort_order >= 0", name="ck_recipe_ingredients_sort_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ingredient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ingredients.id"), nullable=False, index=True
    )
    # NULL means "to taste"
    quantity: Mapped[float | None] = mapped_column(Numeric(10, 3, asdecimal=False), nullable=True)
    unit_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("measurement_units.id"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<RecipeIngredient(recipe_id={self.recipe_id}, ingredient_id={self.ingredient_id})>"
