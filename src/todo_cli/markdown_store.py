"""
Markdown backend.

File layout::

    # Todo List

    ## Unstarted

    - [ ] 🟡 Buy milk
      <!-- id: k3m9x0a2b7qz, priority: medium, created: 2025-01-25T10:15:30.123Z, updated: 2025-01-25T10:15:30.123Z -->
      Semi-skimmed

    ## In Progress
    ...
    ## Completed

    - [x] 🔴 File taxes
      <!-- id: ..., priority: high, created: ..., updated: ..., due: ... -->

Sections are written in the fixed order above and only when non-empty. The
heading ``## Pending`` is read as a synonym for ``## Unstarted``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from .errors import TodoRepositoryError
from .models import PRIORITY_GLYPHS, Todo, TodoPriority, TodoStatus
from .repositories import FileRepository
from .utils import iso_to_ms, ms_to_iso

DOCUMENT_TITLE = "# Todo List"

SECTION_ORDER = (TodoStatus.UNSTARTED, TodoStatus.IN_PROGRESS, TodoStatus.COMPLETED)

SECTION_HEADINGS: Dict[TodoStatus, str] = {
    TodoStatus.UNSTARTED: "Unstarted",
    TodoStatus.IN_PROGRESS: "In Progress",
    TodoStatus.COMPLETED: "Completed",
}

_HEADING_TO_STATUS: Dict[str, TodoStatus] = {
    "unstarted": TodoStatus.UNSTARTED,
    "pending": TodoStatus.UNSTARTED,
    "in progress": TodoStatus.IN_PROGRESS,
    "completed": TodoStatus.COMPLETED,
}

_HEADING_RE = re.compile(r"^##\s+(?P<name>.+?)\s*$")
_CHECKBOX_RE = re.compile(r"^- \[(?P<mark>[ xX])\] (?P<title>.*)$")
_METADATA_RE = re.compile(
    r"^<!--\s*id:\s*(?P<id>[^,]+?)\s*,"
    r"\s*priority:\s*(?P<priority>[^,]+?)\s*,"
    r"\s*created:\s*(?P<created>[^,]+?)\s*,"
    r"\s*updated:\s*(?P<updated>[^,]+?)\s*"
    r"(?:,\s*due:\s*(?P<due>[^,]+?)\s*)?-->$"
)

INDENT = "  "


@dataclass
class _ItemAccumulator:
    line_no: int
    title: str
    status: TodoStatus
    metadata: Optional[Dict[str, Optional[str]]] = None
    description_lines: List[str] = field(default_factory=list)
    expects_metadata: bool = True

    def finish(self) -> Todo:
        if self.metadata is None:
            raise TodoRepositoryError(
                f"line {self.line_no}: todo '{self.title}' has no metadata comment"
            )
        meta = self.metadata
        try:
            return Todo(
                id=meta["id"],
                title=self.title,
                description="\n".join(self.description_lines) or None,
                status=self.status,
                priority=TodoPriority(meta["priority"]),
                created_at=iso_to_ms(meta["created"]),
                updated_at=iso_to_ms(meta["updated"]),
                due_date=iso_to_ms(meta["due"]) if meta.get("due") else None,
            )
        except (ValueError, ValidationError) as exc:
            raise TodoRepositoryError(exc, f"line {self.line_no}") from exc


def _strip_glyph(title: str) -> str:
    for glyph in PRIORITY_GLYPHS.values():
        if title.startswith(glyph):
            return title[len(glyph):].lstrip()
    return title


# PUBLIC_INTERFACE
def parse_markdown(content: str) -> List[Todo]:
    """
    Single-pass, line-oriented parse of a Markdown todo document.

    State is the current section (set by ``##`` headings) and the todo being
    accumulated (opened by a checkbox line, closed by the next checkbox, the
    next heading or end of input). Each item reads as::

        checkbox-line
        <!-- metadata -->        first indented line only
        description-line ...    every later indented line, verbatim

    Description lines lose exactly one ``INDENT`` prefix. Anything else is
    ignored. Lines are split on LF only.

    Raises:
        TodoRepositoryError: a checkbox outside a known section, a malformed
            metadata comment, an item without metadata, or invalid field values.
    """
    todos: List[Todo] = []
    section: Optional[TodoStatus] = None
    current: Optional[_ItemAccumulator] = None

    for line_no, raw in enumerate(content.split("\n"), start=1):
        raw = raw.rstrip("\r")
        line = raw.rstrip()

        heading = _HEADING_RE.match(line)
        if heading:
            if current is not None:
                todos.append(current.finish())
                current = None
            section = _HEADING_TO_STATUS.get(heading.group("name").strip().lower())
            continue

        checkbox = _CHECKBOX_RE.match(line)
        if checkbox:
            if section is None:
                raise TodoRepositoryError(f"line {line_no}: todo item outside a status section")
            if current is not None:
                todos.append(current.finish())
            current = _ItemAccumulator(
                line_no=line_no,
                title=_strip_glyph(checkbox.group("title").strip()),
                status=section,
            )
            continue

        if current is None or not line.strip() or not line[0].isspace():
            continue

        if current.expects_metadata:
            current.expects_metadata = False
            text = line.strip()
            if text.startswith("<!--"):
                meta = _METADATA_RE.match(text)
                if meta is None:
                    raise TodoRepositoryError(f"line {line_no}: malformed metadata comment")
                current.metadata = meta.groupdict()
                continue

        if raw.startswith(INDENT):
            current.description_lines.append(raw[len(INDENT):])
        else:
            current.description_lines.append(raw.lstrip())

    if current is not None:
        todos.append(current.finish())

    return todos


def _format_item(todo: Todo) -> str:
    checkbox = "[x]" if todo.status is TodoStatus.COMPLETED else "[ ]"
    glyph = PRIORITY_GLYPHS[todo.priority]
    due = f", due: {ms_to_iso(todo.due_date)}" if todo.due_date is not None else ""
    lines = [
        f"- {checkbox} {glyph} {todo.title}",
        f"{INDENT}<!-- id: {todo.id}, priority: {todo.priority.value}, "
        f"created: {ms_to_iso(todo.created_at)}, updated: {ms_to_iso(todo.updated_at)}{due} -->",
    ]
    if todo.description:
        lines.extend(f"{INDENT}{part}" for part in todo.description.split("\n") if part.strip())
    return "\n".join(lines) + "\n"


# PUBLIC_INTERFACE
def generate_markdown(todos: Sequence[Todo]) -> str:
    """Render todos grouped by status in the fixed section order."""
    groups: Dict[TodoStatus, List[Todo]] = {status: [] for status in SECTION_ORDER}
    for todo in todos:
        groups[todo.status].append(todo)

    parts = [f"{DOCUMENT_TITLE}\n\n"]
    for status in SECTION_ORDER:
        if not groups[status]:
            continue
        parts.append(f"## {SECTION_HEADINGS[status]}\n\n")
        for todo in groups[status]:
            parts.append(_format_item(todo) + "\n")
    return "".join(parts)


class MarkdownRepository(FileRepository):
    """Todos stored as a human-readable Markdown checklist."""

    format_name = "markdown"

    def parse(self, content: str) -> List[Todo]:
        return parse_markdown(content)

    def render(self, todos: Sequence[Todo]) -> str:
        return generate_markdown(todos)
