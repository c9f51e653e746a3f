"""
Personal todo tracker.

The package exposes the repository contract with its memory, JSON and
Markdown backends, the data provider configuration, and the sync engine that
merges two backends with last-write-wins.
"""

from .errors import (
    TodoAlreadyExistsError,
    TodoError,
    TodoNotFoundError,
    TodoRepositoryError,
    TodoStateError,
    TodoValidationError,
)
from .models import Todo, TodoId, TodoPriority, TodoStatus, make_todo
from .repositories import InMemoryRepository, Repository, create_repository
from .settings import (
    ConfigManager,
    DataProviderConfig,
    JsonProviderConfig,
    MarkdownProviderConfig,
    MemoryProviderConfig,
)
from .sync import SyncResult, sync_todos

__all__ = [
    "ConfigManager",
    "DataProviderConfig",
    "InMemoryRepository",
    "JsonProviderConfig",
    "MarkdownProviderConfig",
    "MemoryProviderConfig",
    "Repository",
    "SyncResult",
    "Todo",
    "TodoAlreadyExistsError",
    "TodoError",
    "TodoId",
    "TodoNotFoundError",
    "TodoPriority",
    "TodoRepositoryError",
    "TodoStateError",
    "TodoStatus",
    "TodoValidationError",
    "create_repository",
    "make_todo",
    "sync_todos",
]
