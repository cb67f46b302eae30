"""Error taxonomy for the recipe store.

Every error carries the operation that failed and, where one is known, the
recipe id, so the HTTP layer and the logs can tell what happened without
parsing messages.
"""

from uuid import UUID


class RecipeStoreError(Exception):
    """Base class for all recipe store failures."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        recipe_id: UUID | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.recipe_id = recipe_id

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class RecipeValidationError(RecipeStoreError):
    """Input that slipped past request validation and cannot be stored."""


class NotFoundError(RecipeStoreError):
    """The requested recipe does not exist."""


class ConflictError(RecipeStoreError):
    """A uniqueness constraint was violated.

    `kind` and `name` are set when the clash was on a shared reference row.
    """

    def __init__(self, message: str, *, kind: str | None = None, name: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.kind = kind
        self.name = name


class StorageFault(RecipeStoreError):
    """Any other database or transaction failure."""


class ResolutionError(StorageFault):
    """Storage failure while resolving a reference name to its id."""

    def __init__(self, message: str, *, kind: str, name: str, **kwargs):
        super().__init__(message, **kwargs)
        self.kind = kind
        self.name = name


class OperationTimeout(StorageFault):
    """The caller's deadline passed before the operation finished."""


def is_unique_violation(exc: BaseException) -> bool:
    """Tell a uniqueness violation apart from other integrity errors.

    Works with psycopg2 (pgcode), psycopg 3 (sqlstate) and sqlite3 (message).
    """
    orig = getattr(exc, "orig", exc)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code is not None:
        return code == "23505"
    message = str(orig)
    return "UNIQUE constraint failed" in message or "PRIMARY KEY constraint failed" in message
