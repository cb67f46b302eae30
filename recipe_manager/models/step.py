"""Recipe step model for ordered cooking instructions."""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin


class RecipeStep(Base, CreatedAtMixin):
    """A single numbered instruction; step_number orders execution within a recipe."""

    __tablename__ = "recipe_steps"
    __table_args__ = (
        UniqueConstraint("recipe_id", "step_number", name="uq_recipe_steps_recipe_step_number"),
        CheckConstraint("step_number >= 1", name="ck_recipe_steps_step_number"),
        CheckConstraint("duration_minutes >= 0", name="ck_recipe_steps_duration"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    step_number: Mapped[int] = mapped_column(Integer, nullable=False)
    instruction: Mapped[str] = mapped_column(Text, nullable=False)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    temperature: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<RecipeStep(recipe_id={self.recipe_id}, step_number={self.step_number})>"
