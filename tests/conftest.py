"""Shared fixtures: an in-memory SQLite database with the full schema."""

import pytest
from sqlalchemy.pool import StaticPool

from recipe_manager.config import Settings
from recipe_manager.database import create_db_engine, create_session_factory
from recipe_manager.models import Base
from recipe_manager.schemas import (
    RecipeIngredientRequest,
    RecipeRequest,
    RecipeStepRequest,
    RecipeTagRequest,
)
from recipe_manager.store import RecipeStore


@pytest.fixture
def engine():
    # One shared connection so every session sees the same in-memory database
    engine = create_db_engine(Settings(database_url="sqlite://"), poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return RecipeStore(session_factory)


@pytest.fixture
def tart_request():
    """Asparagus and feta tart with three ingredients, four steps and three tags."""
    return RecipeRequest(
        title="Asparagus and Feta Tart",
        description="Flaky puff pastry topped with asparagus and feta",
        serves=4,
        prep_time_minutes=15,
        cook_time_minutes=25,
        ingredients=[
            RecipeIngredientRequest(ingredient_name="asparagus", quantity=250, unit_name="gram", sort_order=0),
            RecipeIngredientRequest(
                ingredient_name="feta cheese", quantity=100, unit_name="gram", notes="crumbled", sort_order=1
            ),
            RecipeIngredientRequest(ingredient_name="puff pastry", quantity=1, unit_name="sheet", sort_order=2),
        ],
        steps=[
            RecipeStepRequest(step_number=1, instruction="Heat the oven.", temperature="200C"),
            RecipeStepRequest(step_number=2, instruction="Roll out the pastry.", duration_minutes=5),
            RecipeStepRequest(step_number=3, instruction="Top with asparagus and feta."),
            RecipeStepRequest(step_number=4, instruction="Bake until golden.", duration_minutes=25),
        ],
        tags=[
            RecipeTagRequest(name="vegetarian"),
            RecipeTagRequest(name="pastry"),
            RecipeTagRequest(name="Mediterranean"),
        ],
    )
