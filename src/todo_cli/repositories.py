from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Dict, List, Optional, Sequence, Union

from .errors import TodoAlreadyExistsError, TodoError, TodoNotFoundError, TodoRepositoryError
from .models import Todo, TodoPriority, TodoStatus
from .settings import ConfigManager, DataProviderConfig
from .utils import atomic_write_text

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for todo storage backends.

    Every mutating call is durable when it returns: a new instance pointed at
    the same storage observes the change. ``update`` is an upsert in every
    backend (replace when the id exists, append otherwise).
    """

    @abstractmethod
    def find_by_id(self, todo_id: str) -> Todo:
        """Return the todo with this id. Raises TodoNotFoundError if absent."""

    @abstractmethod
    def find_all(self) -> List[Todo]:
        """Return every todo in backend order."""

    @abstractmethod
    def save(self, todo: Todo) -> Todo:
        """Insert a new todo. Raises TodoAlreadyExistsError if the id is taken."""

    @abstractmethod
    def update(self, todo: Todo) -> Todo:
        """Replace the todo with the same id, inserting it if absent."""

    @abstractmethod
    def delete_by_id(self, todo_id: str) -> None:
        """Remove a todo. Raises TodoNotFoundError if absent."""

    def find_by_status(self, status: TodoStatus) -> List[Todo]:
        wanted = TodoStatus(status)
        return [t for t in self.find_all() if t.status is wanted]

    def find_by_priority(self, priority: TodoPriority) -> List[Todo]:
        wanted = TodoPriority(priority)
        return [t for t in self.find_all() if t.priority is wanted]

    def count(self) -> int:
        return len(self.find_all())


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository. Data lives only as long as the instance.
    """

    def __init__(self, todos: Optional[Sequence[Todo]] = None) -> None:
        self._lock = RLock()
        self._items: Dict[str, Todo] = {}
        for todo in todos or ():
            self.save(todo)

    def find_by_id(self, todo_id: str) -> Todo:
        with self._lock:
            item = self._items.get(todo_id)
        if item is None:
            raise TodoNotFoundError(todo_id)
        return item

    def find_all(self) -> List[Todo]:
        with self._lock:
            return list(self._items.values())

    def save(self, todo: Todo) -> Todo:
        with self._lock:
            if todo.id in self._items:
                raise TodoAlreadyExistsError(todo.id)
            self._items[todo.id] = todo
        return todo

    def update(self, todo: Todo) -> Todo:
        with self._lock:
            self._items[todo.id] = todo
        return todo

    def delete_by_id(self, todo_id: str) -> None:
        with self._lock:
            if self._items.pop(todo_id, None) is None:
                raise TodoNotFoundError(todo_id)

    def count(self) -> int:
        with self._lock:
            return len(self._items)


class FileRepository(Repository):
    """
    Whole-file persistence shared by the JSON and Markdown backends.

    Every call reads the entire file; every mutation rewrites it entirely
    through a temp file and rename. A missing or blank file is an empty
    dataset. Subclasses provide ``parse`` and ``render``.
    """

    format_name = "file"

    def __init__(self, file_path: Union[str, Path]) -> None:
        self._file_path = Path(file_path)

    @property
    def file_path(self) -> Path:
        return self._file_path

    @abstractmethod
    def parse(self, content: str) -> List[Todo]:
        """Decode non-blank file content. May raise ValueError or TodoError."""

    @abstractmethod
    def render(self, todos: Sequence[Todo]) -> str:
        """Encode the full dataset as file content."""

    def _read(self) -> List[Todo]:
        try:
            if not self._file_path.exists():
                logger.debug("%s file %s absent; empty dataset", self.format_name, self._file_path)
                return []
            content = self._file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TodoRepositoryError(exc, f"reading {self._file_path}") from exc

        if not content.strip():
            return []

        try:
            todos = self.parse(content)
        except TodoRepositoryError:
            raise
        except (ValueError, TodoError) as exc:
            raise TodoRepositoryError(exc, f"parsing {self._file_path}") from exc

        seen = set()
        for todo in todos:
            if todo.id in seen:
                raise TodoRepositoryError(
                    f"duplicate todo id {todo.id}", f"parsing {self._file_path}"
                )
            seen.add(todo.id)

        logger.debug("Read %d todos from %s", len(todos), self._file_path)
        return todos

    def _write(self, todos: Sequence[Todo]) -> None:
        content = self.render(todos)
        try:
            atomic_write_text(self._file_path, content)
        except OSError as exc:
            raise TodoRepositoryError(exc, f"writing {self._file_path}") from exc
        logger.debug("Wrote %d todos to %s", len(todos), self._file_path)

    def find_by_id(self, todo_id: str) -> Todo:
        for todo in self._read():
            if todo.id == todo_id:
                return todo
        raise TodoNotFoundError(todo_id)

    def find_all(self) -> List[Todo]:
        return self._read()

    def save(self, todo: Todo) -> Todo:
        todos = self._read()
        if any(t.id == todo.id for t in todos):
            raise TodoAlreadyExistsError(todo.id)
        todos.append(todo)
        self._write(todos)
        return todo

    def update(self, todo: Todo) -> Todo:
        todos = self._read()
        for index, existing in enumerate(todos):
            if existing.id == todo.id:
                todos[index] = todo
                break
        else:
            todos.append(todo)
        self._write(todos)
        return todo

    def delete_by_id(self, todo_id: str) -> None:
        todos = self._read()
        remaining = [t for t in todos if t.id != todo_id]
        if len(remaining) == len(todos):
            raise TodoNotFoundError(todo_id)
        self._write(remaining)


# PUBLIC_INTERFACE
def create_repository(config: DataProviderConfig, manager: Optional[ConfigManager] = None) -> Repository:
    """
    Factory returning a backend for a provider config.
    - memory: InMemoryRepository
    - json: JsonRepository at the resolved file path
    - markdown: MarkdownRepository at the resolved file path
    """
    manager = manager or ConfigManager()
    if config.type == "memory":
        return InMemoryRepository()

    file_path = manager.resolve_file_path(config)
    if config.type == "json":
        from .json_store import JsonRepository

        return JsonRepository(file_path)

    from .markdown_store import MarkdownRepository

    return MarkdownRepository(file_path)
