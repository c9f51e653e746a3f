#!/usr/bin/env python3
"""
Todo CLI - thin command-line front end over the repository, config and sync core.

Usage:
    todo list [--status STATUS] [--priority PRIORITY] [--format json|text]
    todo add --title "Title" [--description "..."] [--priority low|medium|high] [--due-date YYYY-MM-DD]
    todo get --id ID
    todo update --id ID [--title ...] [--description ...] [--clear-description]
                [--priority ...] [--due-date ...] [--clear-due-date] [--status ...]
    todo complete --id ID [--id ID ...]
    todo start --id ID
    todo remove --id ID [--id ID ...]
    todo switch --provider json|markdown|memory [--file-path PATH]
    todo sync --target-provider json|markdown|memory [--target-path PATH]
              [--source-provider ... [--source-path PATH]]
    todo report [--status STATUS] [--priority PRIORITY]
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from typing import Any, Dict, List, Optional

from . import operations
from .errors import TodoError, TodoValidationError
from .logger import setup_logger
from .models import PRIORITY_GLYPHS, Todo, TodoPriority, TodoStatus, is_overdue
from .report import ReportFilters, TodoStatistics, generate_report
from .repositories import Repository, create_repository
from .schemas import TodoRecord
from .settings import PROVIDER_TYPES, ConfigManager, describe_provider, make_provider_config
from .sync import sync_current_with, sync_todos
from .utils import ms_to_iso, parse_due_date

STATUS_CHOICES = [s.value for s in TodoStatus]
PRIORITY_CHOICES = [p.value for p in TodoPriority]


def format_todo_text(todo: Todo) -> str:
    due = ms_to_iso(todo.due_date)[:10] if todo.due_date is not None else "-"
    if is_overdue(todo):
        due += " (overdue)"
    description = todo.description or ""
    return (
        f"[{todo.id}] {PRIORITY_GLYPHS[todo.priority]} {todo.title} | "
        f"{todo.status.value} | due: {due} | {description}"
    ).rstrip(" |")


def format_todo_json(todo: Todo) -> Dict[str, Any]:
    return TodoRecord.from_todo(todo).model_dump(by_alias=True)


def format_report_text(stats: TodoStatistics) -> str:
    lines = [
        f"Total: {stats.total}",
        "By status: " + ", ".join(f"{k}={v}" for k, v in stats.by_status.items()),
        "By priority: " + ", ".join(f"{k}={v}" for k, v in stats.by_priority.items()),
        f"Completion rate: {stats.completion_rate}%",
        f"Overdue: {stats.overdue}",
        f"Due within 7 days: {stats.due_this_week}",
        f"Created within 7 days: {stats.created_this_week}",
        f"Created within 30 days: {stats.created_this_month}",
    ]
    return "\n".join(lines)


def _emit_todo(todo: Todo, output_format: str, prefix: str = "") -> None:
    if output_format == "json":
        print(json.dumps(format_todo_json(todo), ensure_ascii=False))
    else:
        print(f"{prefix}{format_todo_text(todo)}")


def _due_date(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_due_date(value)
    except ValueError as exc:
        raise TodoValidationError("dueDate", str(exc)) from exc


def cmd_list(repo: Repository, args: argparse.Namespace) -> int:
    items = operations.list_todos(repo, status=args.status, priority=args.priority)
    if args.format == "json":
        print(json.dumps([format_todo_json(item) for item in items], ensure_ascii=False))
    elif not items:
        print("No todos found.")
    else:
        for item in items:
            print(format_todo_text(item))
    return 0


def cmd_add(repo: Repository, args: argparse.Namespace) -> int:
    created = operations.add_todo(
        repo,
        title=args.title,
        description=args.description,
        priority=args.priority,
        due_date=_due_date(args.due_date),
    )
    _emit_todo(created, args.format, "Added: ")
    return 0


def cmd_get(repo: Repository, args: argparse.Namespace) -> int:
    _emit_todo(operations.get_todo(repo, args.id), args.format)
    return 0


def cmd_update(repo: Repository, args: argparse.Namespace) -> int:
    description: Any = operations.UNSET
    if args.clear_description:
        description = None
    elif args.description is not None:
        description = args.description

    due_date: Any = operations.UNSET
    if args.clear_due_date:
        due_date = None
    elif args.due_date is not None:
        due_date = _due_date(args.due_date)

    updated = operations.update_todo(
        repo,
        args.id,
        title=args.title,
        description=description,
        priority=args.priority,
        due_date=due_date,
        status=args.status,
    )
    _emit_todo(updated, args.format, "Updated: ")
    return 0


def cmd_complete(repo: Repository, args: argparse.Namespace) -> int:
    for todo in operations.complete_todos(repo, args.ids):
        _emit_todo(todo, args.format, "Completed: ")
    return 0


def cmd_start(repo: Repository, args: argparse.Namespace) -> int:
    _emit_todo(operations.start_todo(repo, args.id), args.format, "Started: ")
    return 0


def cmd_remove(repo: Repository, args: argparse.Namespace) -> int:
    operations.remove_todos(repo, args.ids)
    if args.format == "json":
        print(json.dumps({"deleted": True, "ids": args.ids}, ensure_ascii=False))
    else:
        print(f"Removed: {', '.join(args.ids)}")
    return 0


def cmd_report(repo: Repository, args: argparse.Namespace) -> int:
    filters = ReportFilters(status=args.status, priority=args.priority)
    stats = generate_report(repo, filters)
    if args.format == "json":
        print(json.dumps(dataclasses.asdict(stats), ensure_ascii=False))
    else:
        print(format_report_text(stats))
    return 0


def cmd_switch(manager: ConfigManager, args: argparse.Namespace) -> int:
    config = operations.switch_database(make_provider_config(args.provider, args.file_path), manager)
    if args.format == "json":
        print(json.dumps({"dataProvider": config.model_dump(by_alias=True, exclude_none=True)}))
    else:
        print(f"Database switched to {describe_provider(config)}")
    return 0


def cmd_sync(manager: ConfigManager, args: argparse.Namespace) -> int:
    target = make_provider_config(args.target_provider, args.target_path)
    if args.source_provider:
        result = sync_todos(make_provider_config(args.source_provider, args.source_path), target, manager)
    else:
        result = sync_current_with(target, manager)

    if args.format == "json":
        print(json.dumps(dataclasses.asdict(result), ensure_ascii=False))
    else:
        print(result.message)
    return 0 if result.performed else 1


def _add_format(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todo",
        description="Personal todo tracker with JSON, Markdown and in-memory storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="Path to config.json (default: $TODO_CLI_HOME/config.json)")
    parser.add_argument("--log-level", help="Logging level (default: $TODO_LOG_LEVEL or WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run", required=True)

    parser_list = subparsers.add_parser("list", help="List todos")
    parser_list.add_argument("--status", choices=STATUS_CHOICES, help="Only this status")
    parser_list.add_argument("--priority", choices=PRIORITY_CHOICES, help="Only this priority")
    _add_format(parser_list)

    parser_add = subparsers.add_parser("add", help="Add a todo")
    parser_add.add_argument("--title", "-t", required=True, help="Todo title")
    parser_add.add_argument("--description", "-d", help="Longer description")
    parser_add.add_argument("--priority", "-p", choices=PRIORITY_CHOICES, help="Priority (default: medium)")
    parser_add.add_argument("--due-date", help="Due date (ISO8601 date or datetime)")
    _add_format(parser_add)

    parser_get = subparsers.add_parser("get", help="Show one todo")
    parser_get.add_argument("--id", required=True, help="Todo id")
    _add_format(parser_get)

    parser_update = subparsers.add_parser("update", help="Update a todo")
    parser_update.add_argument("--id", required=True, help="Todo id")
    parser_update.add_argument("--title", "-t", help="New title")
    parser_update.add_argument("--description", "-d", help="New description")
    parser_update.add_argument("--clear-description", action="store_true", help="Remove the description")
    parser_update.add_argument("--priority", "-p", choices=PRIORITY_CHOICES, help="New priority")
    parser_update.add_argument("--due-date", help="New due date (ISO8601 date or datetime)")
    parser_update.add_argument("--clear-due-date", action="store_true", help="Remove the due date")
    parser_update.add_argument("--status", choices=STATUS_CHOICES, help="New status")
    _add_format(parser_update)

    parser_complete = subparsers.add_parser("complete", help="Mark todos completed")
    parser_complete.add_argument("--id", dest="ids", action="append", required=True, help="Todo id (repeatable)")
    _add_format(parser_complete)

    parser_start = subparsers.add_parser("start", help="Mark a todo in progress")
    parser_start.add_argument("--id", required=True, help="Todo id")
    _add_format(parser_start)

    parser_remove = subparsers.add_parser("remove", help="Delete todos")
    parser_remove.add_argument("--id", dest="ids", action="append", required=True, help="Todo id (repeatable)")
    _add_format(parser_remove)

    parser_switch = subparsers.add_parser("switch", help="Change the current storage backend")
    parser_switch.add_argument("--provider", choices=PROVIDER_TYPES, required=True, help="Backend kind")
    parser_switch.add_argument("--file-path", help="Data file for json/markdown")
    _add_format(parser_switch)

    parser_sync = subparsers.add_parser("sync", help="Merge two backends and switch to the target")
    parser_sync.add_argument("--target-provider", choices=PROVIDER_TYPES, required=True, help="Target kind")
    parser_sync.add_argument("--target-path", help="Target data file")
    parser_sync.add_argument("--source-provider", choices=PROVIDER_TYPES, help="Source kind (default: current)")
    parser_sync.add_argument("--source-path", help="Source data file")
    _add_format(parser_sync)

    parser_report = subparsers.add_parser("report", help="Show statistics")
    parser_report.add_argument("--status", choices=STATUS_CHOICES, help="Only this status")
    parser_report.add_argument("--priority", choices=PRIORITY_CHOICES, help="Only this priority")
    _add_format(parser_report)

    return parser


REPOSITORY_COMMANDS = {
    "list": cmd_list,
    "add": cmd_add,
    "get": cmd_get,
    "update": cmd_update,
    "complete": cmd_complete,
    "start": cmd_start,
    "remove": cmd_remove,
    "report": cmd_report,
}

CONFIG_COMMANDS = {
    "switch": cmd_switch,
    "sync": cmd_sync,
}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    args = build_parser().parse_args(argv)

    manager = ConfigManager(config_file_path=args.config)
    setup_logger(args.log_level or manager.settings.log_level)

    try:
        if args.command in CONFIG_COMMANDS:
            return CONFIG_COMMANDS[args.command](manager, args)
        repo = create_repository(manager.get_data_provider_config(), manager)
        return REPOSITORY_COMMANDS[args.command](repo, args)
    except TodoError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
