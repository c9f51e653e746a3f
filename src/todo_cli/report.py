from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from .models import Todo, TodoPriority, TodoStatus, is_completed, is_overdue
from .repositories import Repository
from .utils import now_ms

DAY_MS = 24 * 60 * 60 * 1000
WEEK_MS = 7 * DAY_MS
MONTH_MS = 30 * DAY_MS


@dataclass(frozen=True)
class ReportFilters:
    """
    Narrow the dataset before computing statistics.
    Bounds on created_at are inclusive epoch milliseconds.
    """

    status: Optional[TodoStatus] = None
    priority: Optional[TodoPriority] = None
    created_from: Optional[int] = None
    created_to: Optional[int] = None

    def matches(self, todo: Todo) -> bool:
        if self.status is not None and todo.status is not TodoStatus(self.status):
            return False
        if self.priority is not None and todo.priority is not TodoPriority(self.priority):
            return False
        if self.created_from is not None and todo.created_at < self.created_from:
            return False
        if self.created_to is not None and todo.created_at > self.created_to:
            return False
        return True


@dataclass
class TodoStatistics:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=lambda: {s.value: 0 for s in TodoStatus})
    by_priority: Dict[str, int] = field(default_factory=lambda: {p.value: 0 for p in TodoPriority})
    completion_rate: int = 0
    overdue: int = 0
    due_this_week: int = 0
    created_this_week: int = 0
    created_this_month: int = 0


def compute_statistics(todos: Iterable[Todo], now: int) -> TodoStatistics:
    stats = TodoStatistics()
    for todo in todos:
        stats.total += 1
        stats.by_status[todo.status.value] += 1
        stats.by_priority[todo.priority.value] += 1

        if is_overdue(todo, now):
            stats.overdue += 1
        elif todo.due_date is not None and not is_completed(todo) and todo.due_date <= now + WEEK_MS:
            stats.due_this_week += 1

        if todo.created_at >= now - WEEK_MS:
            stats.created_this_week += 1
        if todo.created_at >= now - MONTH_MS:
            stats.created_this_month += 1

    if stats.total:
        stats.completion_rate = round(stats.by_status[TodoStatus.COMPLETED.value] * 100 / stats.total)
    return stats


# PUBLIC_INTERFACE
def generate_report(
    repo: Repository,
    filters: Optional[ReportFilters] = None,
    now: Optional[int] = None,
) -> TodoStatistics:
    """Compute statistics over the repository contents, optionally filtered."""
    todos = repo.find_all()
    if filters is not None:
        todos = [t for t in todos if filters.matches(t)]
    return compute_statistics(todos, now_ms() if now is None else now)
