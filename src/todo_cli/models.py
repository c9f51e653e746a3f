from __future__ import annotations

import re
import secrets
from enum import Enum
from typing import Any, NewType, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import TodoValidationError
from .utils import now_ms

TodoId = NewType("TodoId", str)

TODO_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
TODO_ID_LENGTH = 12
_TODO_ID_RE = re.compile(r"^[a-zA-Z0-9]{8,}$")
_LINE_BREAK_RE = re.compile(r"[\r\n]")


class TodoStatus(str, Enum):
    """Lifecycle status of a todo."""

    UNSTARTED = "unstarted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TodoPriority(str, Enum):
    """Priority of a todo."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


DEFAULT_PRIORITY = TodoPriority.MEDIUM

PRIORITY_GLYPHS = {
    TodoPriority.HIGH: "🔴",
    TodoPriority.MEDIUM: "🟡",
    TodoPriority.LOW: "🟢",
}


# PUBLIC_INTERFACE
def generate_todo_id() -> TodoId:
    """Return a fresh 12 character lowercase alphanumeric identifier."""
    return TodoId("".join(secrets.choice(TODO_ID_ALPHABET) for _ in range(TODO_ID_LENGTH)))


# PUBLIC_INTERFACE
def parse_todo_id(value: Any) -> TodoId:
    """
    Validate an untrusted value as a TodoId.

    Raises:
        TodoValidationError: if the value is not a string of at least 8
            ASCII letters or digits.
    """
    if not isinstance(value, str) or not value.strip():
        raise TodoValidationError("id", "ID cannot be empty")
    if not _TODO_ID_RE.match(value):
        raise TodoValidationError("id", f"'{value}' is not a valid todo id")
    return TodoId(value)


# PUBLIC_INTERFACE
class Todo(BaseModel):
    """
    Immutable value representing one task.

    Fields:
    - id: Unique identifier, fixed at creation
    - title: Non-blank title
    - description: Optional free text
    - status: unstarted, in_progress or completed
    - priority: low, medium or high
    - created_at: Creation time in epoch milliseconds
    - updated_at: Last mutation time in epoch milliseconds (>= created_at)
    - due_date: Optional due time in epoch milliseconds
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TodoStatus = Field(default=TodoStatus.UNSTARTED, description="Lifecycle status")
    priority: TodoPriority = Field(default=DEFAULT_PRIORITY, description="Priority level")
    created_at: int = Field(..., description="Creation timestamp (epoch ms)")
    updated_at: int = Field(..., description="Last update timestamp (epoch ms)")
    due_date: Optional[int] = Field(default=None, description="Due timestamp (epoch ms)")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not _TODO_ID_RE.match(v):
            raise ValueError(f"'{v}' is not a valid todo id")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title cannot be empty")
        if _LINE_BREAK_RE.search(v):
            raise ValueError("title must be a single line")
        return v.strip()

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)

    @model_validator(mode="after")
    def validate_timestamps(self) -> "Todo":
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not be earlier than created_at")
        return self


def _require_title(title: str) -> str:
    if title is None or not title.strip():
        raise TodoValidationError("title", "Title cannot be empty")
    if _LINE_BREAK_RE.search(title):
        raise TodoValidationError("title", "Title must be a single line")
    return title.strip()


def _clean_description(description: Optional[str]) -> Optional[str]:
    """Blank becomes None; CRLF and CR line endings become LF."""
    if description is None or not description.strip():
        return None
    return description.replace("\r\n", "\n").replace("\r", "\n")


def _touch(todo: Todo, now: Optional[int], **changes: Any) -> Todo:
    stamp = now_ms() if now is None else now
    changes["updated_at"] = max(stamp, todo.created_at)
    return todo.model_copy(update=changes)


# PUBLIC_INTERFACE
def make_todo(
    title: str,
    description: Optional[str] = None,
    priority: Optional[TodoPriority] = None,
    due_date: Optional[int] = None,
    now: Optional[int] = None,
) -> Todo:
    """
    Create a new unstarted Todo with a fresh id.

    The title is stripped and must not be blank. A blank description is
    dropped. Both timestamps are set to ``now`` (defaults to the current time).

    Raises:
        TodoValidationError: if the title is blank.
    """
    clean_title = _require_title(title)
    stamp = now_ms() if now is None else now
    return Todo(
        id=generate_todo_id(),
        title=clean_title,
        description=description.strip() if description else None,
        status=TodoStatus.UNSTARTED,
        priority=TodoPriority(priority) if priority is not None else DEFAULT_PRIORITY,
        created_at=stamp,
        updated_at=stamp,
        due_date=due_date,
    )


def rename(todo: Todo, title: str, now: Optional[int] = None) -> Todo:
    return _touch(todo, now, title=_require_title(title))


def redescribe(todo: Todo, description: Optional[str], now: Optional[int] = None) -> Todo:
    text = _clean_description(description.strip() if description else None)
    return _touch(todo, now, description=text)


def reprioritize(todo: Todo, priority: TodoPriority, now: Optional[int] = None) -> Todo:
    return _touch(todo, now, priority=TodoPriority(priority))


def reschedule(todo: Todo, due_date: Optional[int], now: Optional[int] = None) -> Todo:
    """Set or clear (``None``) the due date."""
    return _touch(todo, now, due_date=due_date)


def set_status(todo: Todo, status: TodoStatus, now: Optional[int] = None) -> Todo:
    return _touch(todo, now, status=TodoStatus(status))


def complete(todo: Todo, now: Optional[int] = None) -> Todo:
    return set_status(todo, TodoStatus.COMPLETED, now)


def start(todo: Todo, now: Optional[int] = None) -> Todo:
    return set_status(todo, TodoStatus.IN_PROGRESS, now)


def is_completed(todo: Todo) -> bool:
    return todo.status is TodoStatus.COMPLETED


def is_in_progress(todo: Todo) -> bool:
    return todo.status is TodoStatus.IN_PROGRESS


def is_unstarted(todo: Todo) -> bool:
    return todo.status is TodoStatus.UNSTARTED


def is_high_priority(todo: Todo) -> bool:
    return todo.priority is TodoPriority.HIGH


# PUBLIC_INTERFACE
def is_overdue(todo: Todo, now: Optional[int] = None) -> bool:
    """True iff a due date is set, it lies before ``now`` and the todo is not completed."""
    if todo.due_date is None or is_completed(todo):
        return False
    current = now_ms() if now is None else now
    return todo.due_date < current
