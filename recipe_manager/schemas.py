"""Request and response shapes exchanged with the HTTP layer.

Request models carry the field-level validation rules; the store assumes
anything it receives has already passed them.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import MeasurementSystem

MIN_QUANTITY = 0.001
MAX_QUANTITY = 10_000_000


# =============================================================================
# Requests
# =============================================================================


class RecipeIngredientRequest(BaseModel):
    """One ingredient line, referenced by name; the store finds or creates it."""

    ingredient_name: str = Field(..., min_length=1, max_length=255)
    # Stored as NUMERIC(10, 3): three decimals, under ten million
    quantity: float | None = Field(default=None, ge=MIN_QUANTITY, lt=MAX_QUANTITY)
    unit_name: str | None = Field(default=None, max_length=50)
    notes: str | None = None
    # Ties are read back by ingredient name
    sort_order: int = Field(default=0, ge=0)


class RecipeStepRequest(BaseModel):
    step_number: int = Field(..., ge=1)
    instruction: str = Field(..., min_length=1)
    duration_minutes: int | None = Field(default=None, ge=0)
    temperature: str | None = Field(default=None, max_length=50)


class RecipeTagRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class RecipeRequest(BaseModel):
    """Body of create and update. Update replaces every collection wholesale."""

    title: str = Field(..., min_length=3, max_length=255)
    description: str | None = None
    photo_filename: str | None = Field(default=None, max_length=255)
    serves: int | None = Field(default=None, gt=0)
    prep_time_minutes: int | None = Field(default=None, ge=0)
    cook_time_minutes: int | None = Field(default=None, ge=0)
    created_by: UUID | None = None

    ingredients: list[RecipeIngredientRequest] = Field(default_factory=list)
    steps: list[RecipeStepRequest] = Field(default_factory=list)
    tags: list[RecipeTagRequest] = Field(default_factory=list)


# =============================================================================
# Responses
# =============================================================================


class MeasurementUnitSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    abbreviation: str | None = None
    system: MeasurementSystem


class RecipeIngredientSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ingredient_id: UUID
    ingredient_name: str
    ingredient_category: str | None = None
    quantity: float | None = None
    notes: str | None = None
    sort_order: int
    unit: MeasurementUnitSchema | None = None


class RecipeStepSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    step_number: int
    instruction: str
    duration_minutes: int | None = None
    temperature: str | None = None


class TagSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    color: str | None = None


class RecipeSchema(BaseModel):
    """Full recipe aggregate. List responses leave the collections empty."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    photo_filename: str | None = None
    serves: int | None = None
    prep_time_minutes: int | None = None
    cook_time_minutes: int | None = None
    total_time_minutes: int | None = None
    created_at: datetime
    updated_at: datetime
    created_by: UUID | None = None

    ingredients: list[RecipeIngredientSchema] = Field(default_factory=list)
    steps: list[RecipeStepSchema] = Field(default_factory=list)
    tags: list[TagSchema] = Field(default_factory=list)


class APIError(BaseModel):
    """Standard error response body."""

    error: str
    status: int
