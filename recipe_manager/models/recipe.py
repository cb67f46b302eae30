"""Recipe model for storing recipe information."""

import uuid

from sqlalchemy import CheckConstraint, Computed, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

# NULL only when both inputs are NULL; a missing side counts as zero otherwise.
TOTAL_TIME_EXPRESSION = (
    "CASE WHEN prep_time_minutes IS NULL AND cook_time_minutes IS NULL THEN NULL "
    "ELSE COALESCE(prep_time_minutes, 0) + COALESCE(cook_time_minutes, 0) END"
)


class Recipe(Base, TimestampMixin):
    """Model for storing recipes.

    Ingredients, steps and tags live in their own tables and are keyed by
    recipe_id with ON DELETE CASCADE, so deleting a row here removes the
    whole aggregate but none of the shared reference rows.
    """

    __tablename__ = "recipes"
    __table_args__ = (
        CheckConstraint("serves > 0", name="ck_recipes_serves_positive"),
        CheckConstraint("prep_time_minutes >= 0", name="ck_recipes_prep_time"),
        CheckConstraint("cook_time_minutes >= 0", name="ck_recipes_cook_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    serves: Mapped[int | None] = mapped_column(Integer, nullable=True)
    prep_time_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cook_time_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Generated by the database, never written by the application
    total_time_minutes: Mapped[int | None] = mapped_column(
        Integer, Computed(TOTAL_TIME_EXPRESSION, persisted=True)
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, title='{self.title}')>"
