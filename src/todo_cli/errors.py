from __future__ import annotations

from typing import Optional


class TodoError(Exception):
    """Base class for every failure surfaced by the todo core."""


# PUBLIC_INTERFACE
class TodoValidationError(TodoError):
    """Caller supplied an invalid value for a field."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Todo validation failed for field '{field}': {reason}")


# PUBLIC_INTERFACE
class TodoNotFoundError(TodoError):
    """The referenced todo does not exist in the backend."""

    def __init__(self, todo_id: str) -> None:
        self.todo_id = todo_id
        super().__init__(f"Todo with id {todo_id} not found")


# PUBLIC_INTERFACE
class TodoAlreadyExistsError(TodoError):
    """An insert collided with an existing id."""

    def __init__(self, todo_id: str) -> None:
        self.todo_id = todo_id
        super().__init__(f"Todo with id {todo_id} already exists")


# PUBLIC_INTERFACE
class TodoRepositoryError(TodoError):
    """
    Wraps an underlying I/O or parse failure.

    The original exception is kept on ``cause`` and, when raised with
    ``raise ... from exc``, on ``__cause__`` as well.
    """

    def __init__(self, cause: object, detail: Optional[str] = None) -> None:
        self.cause = cause
        message = f"Todo repository operation failed: {cause}"
        if detail:
            message = f"Todo repository operation failed ({detail}): {cause}"
        super().__init__(message)


# PUBLIC_INTERFACE
class TodoStateError(TodoError):
    """Invalid status transition. Not raised by the three-state model."""

    def __init__(self, current_state: str, attempted_transition: str) -> None:
        self.current_state = current_state
        self.attempted_transition = attempted_transition
        super().__init__(
            f"Invalid todo state transition from '{current_state}' to '{attempted_transition}'"
        )
