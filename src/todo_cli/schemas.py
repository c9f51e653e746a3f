from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .models import Todo, TodoPriority, TodoStatus
from .utils import iso_to_ms, ms_to_iso


def _check_iso(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        iso_to_ms(value)
    except ValueError as e:
        raise ValueError(f"'{value}' is not an ISO8601 datetime") from e
    return value


# PUBLIC_INTERFACE
class TodoRecord(BaseModel):
    """
    On-disk shape of a todo in the JSON data file.

    Keys use the camelCase names of the file format; timestamps are ISO-8601
    UTC strings with millisecond precision.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "k3m9x0a2b7qz",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "status": "unstarted",
                "priority": "medium",
                "createdAt": "2025-01-25T10:15:30.123Z",
                "updatedAt": "2025-01-26T09:00:00.000Z",
                "dueDate": "2025-02-01T00:00:00.000Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TodoStatus = Field(..., description="unstarted, in_progress or completed")
    priority: TodoPriority = Field(..., description="low, medium or high")
    created_at: str = Field(..., alias="createdAt", description="Creation timestamp")
    updated_at: str = Field(..., alias="updatedAt", description="Last update timestamp")
    due_date: Optional[str] = Field(default=None, alias="dueDate", description="Due timestamp")

    @field_validator("created_at", "updated_at", "due_date")
    @classmethod
    def validate_timestamp(cls, v: Optional[str]) -> Optional[str]:
        """Reject anything that is not an ISO8601 datetime string."""
        return _check_iso(v)

    @classmethod
    def from_todo(cls, todo: Todo) -> "TodoRecord":
        return cls(
            id=todo.id,
            title=todo.title,
            description=todo.description,
            status=todo.status,
            priority=todo.priority,
            created_at=ms_to_iso(todo.created_at),
            updated_at=ms_to_iso(todo.updated_at),
            due_date=ms_to_iso(todo.due_date) if todo.due_date is not None else None,
        )

    def to_todo(self) -> Todo:
        """Convert to the domain value; raises pydantic ValidationError on bad ids or titles."""
        return Todo(
            id=self.id,
            title=self.title,
            description=self.description,
            status=self.status,
            priority=self.priority,
            created_at=iso_to_ms(self.created_at),
            updated_at=iso_to_ms(self.updated_at),
            due_date=iso_to_ms(self.due_date) if self.due_date is not None else None,
        )


TodoRecordList = TypeAdapter(List[TodoRecord])
