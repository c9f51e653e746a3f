from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .models import Todo
from .repositories import Repository, create_repository
from .settings import ConfigManager, DataProviderConfig, describe_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    """
    Outcome of a sync.

    - merged_count: todos held by both sides afterwards
    - source_count / target_count: sizes read before merging
    - performed: False when the sync was rejected without touching anything
    - message: human readable summary
    """

    merged_count: int
    source_count: int
    target_count: int
    performed: bool = True
    message: str = ""


# PUBLIC_INTERFACE
def merge_last_write_wins(source: Sequence[Todo], target: Sequence[Todo]) -> List[Todo]:
    """
    Merge two datasets keyed by id.

    Target entries seed the result; a source entry replaces one only when its
    updated_at is strictly greater, so ties keep the target's version. Result
    order is target order followed by source-only entries.
    """
    merged: Dict[str, Todo] = {todo.id: todo for todo in target}
    for todo in source:
        existing = merged.get(todo.id)
        if existing is None or todo.updated_at > existing.updated_at:
            merged[todo.id] = todo
    return list(merged.values())


def _replace_all(repo: Repository, todos: Sequence[Todo]) -> None:
    for existing in repo.find_all():
        repo.delete_by_id(existing.id)
    for todo in todos:
        repo.save(todo)


# PUBLIC_INTERFACE
def sync_todos(
    source_config: DataProviderConfig,
    target_config: DataProviderConfig,
    manager: Optional[ConfigManager] = None,
) -> SyncResult:
    """
    Merge two backends with last-write-wins and write the result to both.

    Steps:
    1. Reject (performed=False, nothing touched) when both configs denote the
       same backend.
    2. Build both backends directly from their configs and read them.
    3. Merge with merge_last_write_wins.
    4. Rewrite the source unless it is the volatile memory backend.
    5. Rewrite the target.
    6. Persist target_config as the current configuration.

    Any failure aborts the sync. A backend cleared in steps 4 or 5 is not
    restored if repopulating it fails.
    """
    manager = manager or ConfigManager()

    if manager.same_backend(source_config, target_config):
        message = "Cannot sync: source and target are the same database"
        logger.warning("%s (%s)", message, describe_provider(source_config))
        return SyncResult(0, 0, 0, performed=False, message=message)

    source_repo = create_repository(source_config, manager)
    target_repo = create_repository(target_config, manager)

    source_todos = source_repo.find_all()
    target_todos = target_repo.find_all()
    merged = merge_last_write_wins(source_todos, target_todos)

    if source_config.type != "memory":
        _replace_all(source_repo, merged)
    _replace_all(target_repo, merged)

    manager.set_data_provider_config(target_config)

    message = (
        f"Sync completed: {describe_provider(source_config)} ({len(source_todos)} todos) <-> "
        f"{describe_provider(target_config)} ({len(target_todos)} todos); "
        f"{len(merged)} todos total after merge"
    )
    logger.info(message)
    return SyncResult(
        merged_count=len(merged),
        source_count=len(source_todos),
        target_count=len(target_todos),
        message=message,
    )


# PUBLIC_INTERFACE
def sync_current_with(target_config: DataProviderConfig, manager: Optional[ConfigManager] = None) -> SyncResult:
    """Sync using the current configuration as the source."""
    manager = manager or ConfigManager()
    return sync_todos(manager.get_data_provider_config(), target_config, manager)
