"""Caller-supplied time limits for store operations."""

import time
import uuid

from ..errors import OperationTimeout


class Deadline:
    """Absolute expiry derived from a caller-supplied timeout in seconds."""

    def __init__(self, timeout: float | None = None):
        self.expires_at = None if timeout is None else time.monotonic() + timeout

    def check(self, operation: str, recipe_id: uuid.UUID | None) -> None:
        if self.expires_at is not None and time.monotonic() >= self.expires_at:
            raise OperationTimeout(
                "deadline exceeded, transaction rolled back",
                operation=operation,
                recipe_id=recipe_id,
            )
