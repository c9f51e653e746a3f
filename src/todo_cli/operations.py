from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from . import models
from .errors import TodoValidationError
from .models import Todo, TodoPriority, TodoStatus
from .repositories import Repository
from .settings import ConfigManager, DataProviderConfig

logger = logging.getLogger(__name__)

UNSET: Any = object()


def _require_id(todo_id: Optional[str]) -> str:
    if todo_id is None or not str(todo_id).strip():
        raise TodoValidationError("id", "ID cannot be empty")
    return str(todo_id).strip()


# PUBLIC_INTERFACE
def add_todo(
    repo: Repository,
    title: str,
    description: Optional[str] = None,
    priority: Optional[TodoPriority] = None,
    due_date: Optional[int] = None,
) -> Todo:
    """Create a todo and insert it. Raises TodoValidationError on a blank title."""
    todo = models.make_todo(title, description=description, priority=priority, due_date=due_date)
    saved = repo.save(todo)
    logger.info("Added todo %s", saved.id)
    return saved


def get_todo(repo: Repository, todo_id: str) -> Todo:
    return repo.find_by_id(_require_id(todo_id))


# PUBLIC_INTERFACE
def list_todos(
    repo: Repository,
    status: Optional[TodoStatus] = None,
    priority: Optional[TodoPriority] = None,
) -> List[Todo]:
    """Return all todos, optionally narrowed to one status and/or priority."""
    if status is not None:
        todos = repo.find_by_status(status)
    else:
        todos = repo.find_all()
    if priority is not None:
        wanted = TodoPriority(priority)
        todos = [t for t in todos if t.priority is wanted]
    return todos


# PUBLIC_INTERFACE
def update_todo(
    repo: Repository,
    todo_id: str,
    *,
    title: Optional[str] = None,
    description: Any = UNSET,
    priority: Optional[TodoPriority] = None,
    due_date: Any = UNSET,
    status: Optional[TodoStatus] = None,
) -> Todo:
    """
    Apply field changes to an existing todo.

    ``title``, ``priority`` and ``status`` change when not None.
    ``description`` and ``due_date`` change when not UNSET; None clears them.
    With no changes the stored todo is returned untouched.

    Raises:
        TodoValidationError: blank id or blank new title.
        TodoNotFoundError: no todo with this id.
    """
    todo = repo.find_by_id(_require_id(todo_id))
    original = todo

    if title is not None:
        todo = models.rename(todo, title)
    if description is not UNSET:
        todo = models.redescribe(todo, description)
    if priority is not None:
        todo = models.reprioritize(todo, priority)
    if due_date is not UNSET:
        todo = models.reschedule(todo, due_date)
    if status is not None:
        todo = models.set_status(todo, status)

    if todo is original:
        return original
    updated = repo.update(todo)
    logger.info("Updated todo %s", updated.id)
    return updated


# PUBLIC_INTERFACE
def complete_todos(repo: Repository, ids: Sequence[str]) -> List[Todo]:
    """Mark each todo completed. Raises TodoValidationError on an empty id list."""
    if not ids:
        raise TodoValidationError("ids", "At least one ID must be provided")
    return [update_todo(repo, todo_id, status=TodoStatus.COMPLETED) for todo_id in ids]


def start_todo(repo: Repository, todo_id: str) -> Todo:
    return update_todo(repo, todo_id, status=TodoStatus.IN_PROGRESS)


# PUBLIC_INTERFACE
def remove_todos(repo: Repository, ids: Sequence[str]) -> None:
    """
    Delete each todo in turn.

    Stops at the first missing id; deletions before it are kept.

    Raises:
        TodoValidationError: empty id list or blank id.
        TodoNotFoundError: an id is absent.
    """
    if not ids:
        raise TodoValidationError("ids", "At least one ID must be provided")
    for todo_id in ids:
        repo.delete_by_id(_require_id(todo_id))
        logger.info("Removed todo %s", todo_id)


# PUBLIC_INTERFACE
def switch_database(config: DataProviderConfig, manager: Optional[ConfigManager] = None) -> DataProviderConfig:
    """Persist ``config`` as the current data provider and return it."""
    manager = manager or ConfigManager()
    manager.set_data_provider_config(config)
    return config
