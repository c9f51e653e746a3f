from __future__ import annotations

import json
from typing import List, Sequence

from .models import Todo
from .repositories import FileRepository
from .schemas import TodoRecord, TodoRecordList


# PUBLIC_INTERFACE
def serialize_todos(todos: Sequence[Todo]) -> str:
    """Encode todos as a pretty-printed JSON array of TodoRecord objects."""
    records = [TodoRecord.from_todo(t).model_dump(by_alias=True, exclude_none=True) for t in todos]
    return json.dumps(records, indent=2, ensure_ascii=False) + "\n"


# PUBLIC_INTERFACE
def parse_todos(content: str) -> List[Todo]:
    """
    Decode a JSON array of todo records.

    Raises:
        ValueError: malformed JSON, a non-array document, or any record that
            violates the schema (pydantic's ValidationError is a ValueError).
    """
    records = TodoRecordList.validate_json(content)
    return [record.to_todo() for record in records]


class JsonRepository(FileRepository):
    """Todos stored as a single JSON array, rewritten on every mutation."""

    format_name = "json"

    def parse(self, content: str) -> List[Todo]:
        return parse_todos(content)

    def render(self, todos: Sequence[Todo]) -> str:
        return serialize_todos(todos)
