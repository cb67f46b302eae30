"""Error taxonomy helpers."""

import pytest

from recipe_manager.errors import ConflictError, is_unique_violation


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__("error")
        self.pgcode = pgcode


class _Wrapped(Exception):
    def __init__(self, orig):
        super().__init__(str(orig))
        self.orig = orig


@pytest.mark.parametrize(
    "orig, expected",
    [
        (_PgError("23505"), True),
        (_PgError("23503"), False),
        (Exception("UNIQUE constraint failed: tags.name"), True),
        (Exception("FOREIGN KEY constraint failed"), False),
    ],
)
def test_is_unique_violation(orig, expected):
    assert is_unique_violation(_Wrapped(orig)) is expected


def test_error_message_names_operation():
    assert str(ConflictError("duplicate step 1", operation="create")) == "create: duplicate step 1"
    assert str(ConflictError("duplicate step 1")) == "duplicate step 1"


def test_conflict_on_reference_row_carries_kind_and_name():
    error = ConflictError("tag 'quick' conflicts with a concurrent insert", kind="tag", name="quick")
    assert (error.kind, error.name) == ("tag", "quick")
    assert ConflictError("duplicate step 1").kind is None
