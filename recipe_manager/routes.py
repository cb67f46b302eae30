"""Recipe CRUD API router.

Endpoints:
- POST /api/v1/recipes - Create recipe with ingredients, steps and tags
- GET /api/v1/recipes - List recipes (scalar fields only)
- GET /api/v1/recipes/{id} - Get full recipe
- PUT /api/v1/recipes/{id} - Replace recipe
- DELETE /api/v1/recipes/{id} - Delete recipe

Handlers are plain functions, so FastAPI runs them in its thread pool and a
request waiting on the database never blocks the event loop.
"""

import uuid

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from .database import get_session_factory
from .errors import (
    ConflictError,
    NotFoundError,
    OperationTimeout,
    RecipeStoreError,
    RecipeValidationError,
)
from .schemas import APIError, RecipeRequest, RecipeSchema
from .store import RecipeStore

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])

ERROR_RESPONSES = {
    400: {"model": APIError},
    404: {"model": APIError},
    409: {"model": APIError},
    500: {"model": APIError},
    504: {"model": APIError},
}

# Checked in order; subclasses before their parents
STATUS_BY_ERROR = (
    (RecipeValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (OperationTimeout, status.HTTP_504_GATEWAY_TIMEOUT),
)


def get_recipe_store() -> RecipeStore:
    """Dependency for endpoints that need the recipe repository."""
    return RecipeStore(get_session_factory())


def status_for(exc: RecipeStoreError) -> int:
    for error_cls, code in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def recipe_store_error_handler(request: Request, exc: RecipeStoreError) -> JSONResponse:
    """Map store errors onto HTTP status codes with the standard error body."""
    code = status_for(exc)
    return JSONResponse(status_code=code, content={"error": str(exc), "status": code})


@router.post(
    "",
    response_model=RecipeSchema,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
def create_recipe(payload: RecipeRequest, store: RecipeStore = Depends(get_recipe_store)):
    """Create a new recipe with ingredients, steps, and tags."""
    return store.create(payload)


@router.get("", response_model=list[RecipeSchema], responses={500: {"model": APIError}})
def list_recipes(store: RecipeStore = Depends(get_recipe_store)):
    """List all recipes, most recently updated first."""
    return store.list()


@router.get("/{recipe_id}", response_model=RecipeSchema, responses=ERROR_RESPONSES)
def get_recipe(recipe_id: uuid.UUID, store: RecipeStore = Depends(get_recipe_store)):
    """Get a recipe by ID, including ingredients, steps, and tags."""
    return store.get(recipe_id)


@router.put("/{recipe_id}", response_model=RecipeSchema, responses=ERROR_RESPONSES)
def update_recipe(
    recipe_id: uuid.UUID,
    payload: RecipeRequest,
    store: RecipeStore = Depends(get_recipe_store),
):
    """Update an existing recipe. All fields and collections are replaced."""
    return store.update(recipe_id, payload)


@router.delete(
    "/{recipe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=ERROR_RESPONSES,
)
def delete_recipe(recipe_id: uuid.UUID, store: RecipeStore = Depends(get_recipe_store)):
    """Delete a recipe by ID."""
    store.delete(recipe_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
