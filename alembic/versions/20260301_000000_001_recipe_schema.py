"""Recipe schema: recipes, reference tables, junction tables, seed data.

Revision ID: 001
Revises:
Create Date: 2026-03-01

Fresh start. Seeds the common measurement units, a starter ingredient list
and a few tags so new installs have something to pick from.
"""
import uuid
from datetime import datetime, timezone
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TOTAL_TIME_EXPRESSION = (
    "CASE WHEN prep_time_minutes IS NULL AND cook_time_minutes IS NULL THEN NULL "
    "ELSE COALESCE(prep_time_minutes, 0) + COALESCE(cook_time_minutes, 0) END"
)

measurement_system = sa.Enum("metric", "imperial", name="measurement_system")

# (name, abbreviation, system, conversion_factor)
SEED_UNITS = [
    ("gram", "g", "metric", 1.0),
    ("kilogram", "kg", "metric", 1000.0),
    ("millilitre", "ml", "metric", 1.0),
    ("litre", "l", "metric", 1000.0),
    ("piece", "pc", "metric", 1.0),
    ("cup", "cup", "imperial", 240.0),
    ("tablespoon", "tbsp", "imperial", 15.0),
    ("teaspoon", "tsp", "imperial", 5.0),
    ("ounce", "oz", "imperial", 28.35),
    ("pound", "lb", "imperial", 453.6),
    ("fluid ounce", "fl oz", "imperial", 29.57),
    ("pint", "pt", "imperial", 473.18),
    ("quart", "qt", "imperial", 946.35),
]

# Imperial volume/weight units convert into these metric base units
BASE_UNIT_OF = {
    "kilogram": "gram",
    "litre": "millilitre",
    "cup": "millilitre",
    "tablespoon": "millilitre",
    "teaspoon": "millilitre",
    "fluid ounce": "millilitre",
    "pint": "millilitre",
    "quart": "millilitre",
    "ounce": "gram",
    "pound": "gram",
}

SEED_INGREDIENTS = [
    ("asparagus", "vegetables"),
    ("feta cheese", "dairy"),
    ("puff pastry", "bakery"),
    ("olive oil", "oils"),
    ("eggs", "dairy"),
    ("cumin seeds", "spices"),
    ("coriander seeds", "spices"),
    ("nigella seeds", "spices"),
    ("lemon", "fruits"),
    ("greek yogurt", "dairy"),
    ("black pepper", "spices"),
    ("salt", "seasoning"),
]

SEED_TAGS = [
    ("vegetarian", "Suitable for vegetarians", "#4CAF50"),
    ("quick", "Ready in 30 minutes or less", "#FF9800"),
    ("Mediterranean", "Mediterranean cuisine", "#2196F3"),
    ("pastry", "Contains pastry", "#9C27B0"),
    ("savory tart", "Savory tart recipes", "#795548"),
]


def upgrade() -> None:
    # === Aggregate root ===

    op.create_table(
        "recipes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("photo_filename", sa.String(length=255), nullable=True),
        sa.Column("serves", sa.Integer(), nullable=True),
        sa.Column("prep_time_minutes", sa.Integer(), nullable=True),
        sa.Column("cook_time_minutes", sa.Integer(), nullable=True),
        sa.Column(
            "total_time_minutes",
            sa.Integer(),
            sa.Computed(TOTAL_TIME_EXPRESSION, persisted=True),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("serves > 0", name="ck_recipes_serves_positive"),
        sa.CheckConstraint("prep_time_minutes >= 0", name="ck_recipes_prep_time"),
        sa.CheckConstraint("cook_time_minutes >= 0", name="ck_recipes_cook_time"),
    )
    op.create_index("idx_recipes_updated_at", "recipes", ["updated_at"])

    # === Shared reference tables ===

    op.create_table(
        "ingredients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_ingredients_category", "ingredients", ["category"])

    op.create_table(
        "measurement_units",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("abbreviation", sa.String(length=20), nullable=True),
        sa.Column("system", measurement_system, nullable=False),
        sa.Column("base_unit_id", sa.Uuid(), nullable=True),
        sa.Column("conversion_factor", sa.Numeric(10, 6), nullable=True),
        sa.ForeignKeyConstraint(["base_unit_id"], ["measurement_units.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_measurement_units_system", "measurement_units", ["system"])

    op.create_table(
        "tags",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=7), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # === Recipe-owned rows (cascade with the recipe) ===

    op.create_table(
        "recipe_ingredients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("ingredient_id", sa.Uuid(), nullable=False),
        sa.Column("quantity", sa.Numeric(10, 3), nullable=True),
        sa.Column("unit_id", sa.Uuid(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["ingredient_id"], ["ingredients.id"]),
        sa.ForeignKeyConstraint(["unit_id"], ["measurement_units.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "recipe_id", "ingredient_id", name="uq_recipe_ingredients_recipe_ingredient"
        ),
        sa.CheckConstraint("quantity IS NULL OR quantity > 0", name="ck_recipe_ingredients_quantity"),
        sa.CheckConstraint("sort_order >= 0", name="ck_recipe_ingredients_sort_order"),
    )
    op.create_index("ix_recipe_ingredients_recipe_id", "recipe_ingredients", ["recipe_id"])
    op.create_index("ix_recipe_ingredients_ingredient_id", "recipe_ingredients", ["ingredient_id"])
    op.create_index(
        "idx_recipe_ingredients_sort_order", "recipe_ingredients", ["recipe_id", "sort_order"]
    )

    op.create_table(
        "recipe_steps",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("step_number", sa.Integer(), nullable=False),
        sa.Column("instruction", sa.Text(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("temperature", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("recipe_id", "step_number", name="uq_recipe_steps_recipe_step_number"),
        sa.CheckConstraint("step_number >= 1", name="ck_recipe_steps_step_number"),
        sa.CheckConstraint("duration_minutes >= 0", name="ck_recipe_steps_duration"),
    )
    op.create_index("ix_recipe_steps_recipe_id", "recipe_steps", ["recipe_id"])

    op.create_table(
        "recipe_tags",
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("tag_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["recipe_id"], ["recipes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("recipe_id", "tag_id"),
    )

    # === Seed data ===

    units_table = sa.table(
        "measurement_units",
        sa.column("id", sa.Uuid()),
        sa.column("name", sa.String()),
        sa.column("abbreviation", sa.String()),
        sa.column("system", measurement_system),
        sa.column("base_unit_id", sa.Uuid()),
        sa.column("conversion_factor", sa.Numeric(10, 6)),
    )
    unit_ids = {name: uuid.uuid4() for name, _, _, _ in SEED_UNITS}
    # Base units first so the self-referencing foreign key is satisfied
    op.bulk_insert(
        units_table,
        [
            {
                "id": unit_ids[name],
                "name": name,
                "abbreviation": abbreviation,
                "system": system,
                "base_unit_id": None,
                "conversion_factor": factor,
            }
            for name, abbreviation, system, factor in SEED_UNITS
        ],
    )
    for name, base in BASE_UNIT_OF.items():
        op.execute(
            units_table.update()
            .where(units_table.c.id == unit_ids[name])
            .values(base_unit_id=unit_ids[base])
        )

    now = datetime.now(timezone.utc)
    ingredients_table = sa.table(
        "ingredients",
        sa.column("id", sa.Uuid()),
        sa.column("name", sa.String()),
        sa.column("category", sa.String()),
        sa.column("created_at", sa.DateTime(timezone=True)),
    )
    op.bulk_insert(
        ingredients_table,
        [
            {"id": uuid.uuid4(), "name": name, "category": category, "created_at": now}
            for name, category in SEED_INGREDIENTS
        ],
    )

    tags_table = sa.table(
        "tags",
        sa.column("id", sa.Uuid()),
        sa.column("name", sa.String()),
        sa.column("description", sa.Text()),
        sa.column("color", sa.String()),
        sa.column("created_at", sa.DateTime(timezone=True)),
    )
    op.bulk_insert(
        tags_table,
        [
            {
                "id": uuid.uuid4(),
                "name": name,
                "description": description,
                "color": color,
                "created_at": now,
            }
            for name, description, color in SEED_TAGS
        ],
    )


def downgrade() -> None:
    op.drop_table("recipe_tags")
    op.drop_table("recipe_steps")
    op.drop_table("recipe_ingredients")
    op.drop_table("tags")
    op.drop_table("measurement_units")
    op.drop_table("ingredients")
    op.drop_table("recipes")

    # Drop enum types
    op.execute("DROP TYPE IF EXISTS measurement_system")
