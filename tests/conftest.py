import pytest

from todo_cli.models import Todo, TodoPriority, TodoStatus

ENV_VARS = (
    "TODO_CLI_HOME",
    "TODO_PROVIDER_TYPE",
    "TODO_JSON_FILE_PATH",
    "TODO_MARKDOWN_FILE_PATH",
    "TODO_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    # Keep every test away from the real ~/.todo-cli
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "todo-home"
    monkeypatch.setenv("TODO_CLI_HOME", str(home))
    return home


def build_todo(
    todo_id="abcdef123456",
    title="Write report",
    description=None,
    status=TodoStatus.UNSTARTED,
    priority=TodoPriority.MEDIUM,
    created_at=1_700_000_000_000,
    updated_at=None,
    due_date=None,
):
    return Todo(
        id=todo_id,
        title=title,
        description=description,
        status=status,
        priority=priority,
        created_at=created_at,
        updated_at=created_at if updated_at is None else updated_at,
        due_date=due_date,
    )


@pytest.fixture
def todo_factory():
    return build_todo
