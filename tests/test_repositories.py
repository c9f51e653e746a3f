import pytest

from todo_cli.errors import TodoAlreadyExistsError, TodoNotFoundError
from todo_cli.json_store import JsonRepository
from todo_cli.markdown_store import MarkdownRepository
from todo_cli.models import TodoPriority, TodoStatus
from todo_cli.repositories import InMemoryRepository, create_repository
from todo_cli.settings import (
    ConfigManager,
    JsonProviderConfig,
    MarkdownProviderConfig,
    MemoryProviderConfig,
)

from conftest import build_todo


@pytest.fixture(params=["memory", "json", "markdown"])
def repo(request, tmp_path):
    if request.param == "memory":
        return InMemoryRepository()
    if request.param == "json":
        return JsonRepository(tmp_path / "todos.json")
    return MarkdownRepository(tmp_path / "todos.md")


def seed(repo):
    todos = [
        build_todo(todo_id="aaaaaaaa0001", title="One", priority=TodoPriority.HIGH),
        build_todo(todo_id="aaaaaaaa0002", title="Two", status=TodoStatus.IN_PROGRESS),
        build_todo(todo_id="aaaaaaaa0003", title="Three", status=TodoStatus.COMPLETED, priority=TodoPriority.HIGH),
    ]
    for todo in todos:
        repo.save(todo)
    return todos


class TestRepositoryContract:
    def test_empty_backend(self, repo):
        assert repo.find_all() == []
        assert repo.count() == 0

    def test_save_then_find_by_id(self, repo):
        todo = build_todo(description="details", due_date=1_800_000_000_000)
        assert repo.save(todo) == todo
        assert repo.find_by_id(todo.id) == todo

    def test_find_by_id_missing(self, repo):
        with pytest.raises(TodoNotFoundError) as exc_info:
            repo.find_by_id("missing00001")
        assert exc_info.value.todo_id == "missing00001"

    def test_save_duplicate_id_fails_and_keeps_one_record(self, repo):
        todo = build_todo()
        repo.save(todo)
        with pytest.raises(TodoAlreadyExistsError):
            repo.save(build_todo(title="Other title"))
        assert repo.count() == 1
        assert repo.find_by_id(todo.id).title == "Write report"

    def test_update_replaces_existing(self, repo):
        seed(repo)
        changed = build_todo(todo_id="aaaaaaaa0002", title="Two v2", updated_at=1_700_000_000_500)
        repo.update(changed)
        assert repo.find_by_id("aaaaaaaa0002") == changed
        assert repo.count() == 3

    def test_update_inserts_when_absent(self, repo):
        todo = build_todo(todo_id="newtodo00001")
        assert repo.update(todo) == todo
        assert repo.find_by_id("newtodo00001") == todo

    def test_delete(self, repo):
        seed(repo)
        repo.delete_by_id("aaaaaaaa0001")
        assert repo.count() == 2
        with pytest.raises(TodoNotFoundError):
            repo.find_by_id("aaaaaaaa0001")

    def test_delete_missing_leaves_dataset_unchanged(self, repo):
        todos = seed(repo)
        with pytest.raises(TodoNotFoundError):
            repo.delete_by_id("missing00001")
        assert {t.id for t in repo.find_all()} == {t.id for t in todos}

    def test_filters(self, repo):
        seed(repo)
        assert [t.id for t in repo.find_by_status(TodoStatus.IN_PROGRESS)] == ["aaaaaaaa0002"]
        assert {t.id for t in repo.find_by_priority("high")} == {"aaaaaaaa0001", "aaaaaaaa0003"}
        assert repo.find_by_status("unstarted")[0].title == "One"


class TestFileDurability:
    @pytest.mark.parametrize("cls,name", [(JsonRepository, "todos.json"), (MarkdownRepository, "todos.md")])
    def test_new_instance_observes_writes(self, tmp_path, cls, name):
        path = tmp_path / name
        first = cls(path)
        seed(first)
        first.delete_by_id("aaaaaaaa0003")
        first.update(build_todo(todo_id="aaaaaaaa0001", title="Renamed", updated_at=1_700_000_000_001))

        second = cls(path)
        assert second.count() == 2
        assert second.find_by_id("aaaaaaaa0001").title == "Renamed"

    @pytest.mark.parametrize("cls,name", [(JsonRepository, "todos.json"), (MarkdownRepository, "todos.md")])
    def test_creates_missing_parent_directory(self, tmp_path, cls, name):
        path = tmp_path / "nested" / "dir" / name
        cls(path).save(build_todo())
        assert path.exists()


class TestMemoryRepository:
    def test_instances_do_not_share_data(self):
        a = InMemoryRepository()
        a.save(build_todo())
        assert InMemoryRepository().count() == 0

    def test_preserves_insertion_order(self):
        repo = InMemoryRepository([build_todo(todo_id=f"order0000{i:03d}") for i in range(5)])
        assert [t.id for t in repo.find_all()] == [f"order0000{i:03d}" for i in range(5)]


class TestCreateRepository:
    def test_memory(self):
        assert isinstance(create_repository(MemoryProviderConfig()), InMemoryRepository)

    def test_json_with_explicit_path(self, tmp_path):
        repo = create_repository(JsonProviderConfig(file_path=str(tmp_path / "x.json")))
        assert isinstance(repo, JsonRepository)
        assert repo.file_path == tmp_path / "x.json"

    def test_markdown_default_path(self, isolated_home):
        repo = create_repository(MarkdownProviderConfig(), ConfigManager())
        assert isinstance(repo, MarkdownRepository)
        assert repo.file_path == isolated_home / "todos.md"
