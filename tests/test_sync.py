import pytest

from todo_cli.errors import TodoRepositoryError
from todo_cli.json_store import JsonRepository
from todo_cli.markdown_store import MarkdownRepository
from todo_cli.settings import (
    ConfigManager,
    JsonProviderConfig,
    MarkdownProviderConfig,
    MemoryProviderConfig,
)
from todo_cli.sync import merge_last_write_wins, sync_current_with, sync_todos

from conftest import build_todo


@pytest.fixture
def paths(tmp_path):
    json_path = tmp_path / "data" / "todos.json"
    md_path = tmp_path / "data" / "todos.md"
    return (
        json_path,
        md_path,
        JsonProviderConfig(file_path=str(json_path)),
        MarkdownProviderConfig(file_path=str(md_path)),
    )


def sorted_by_id(todos):
    return sorted(todos, key=lambda t: t.id)


class TestMerge:
    def test_newer_source_wins(self):
        old = build_todo(title="Old")
        new = build_todo(title="New", updated_at=old.updated_at + 1)
        assert merge_last_write_wins([new], [old]) == [new]

    def test_newer_target_wins(self):
        old = build_todo(title="Old")
        new = build_todo(title="New", updated_at=old.updated_at + 1)
        assert merge_last_write_wins([old], [new]) == [new]

    def test_tie_keeps_target(self):
        source = build_todo(title="Source side")
        target = build_todo(title="Target side")
        assert merge_last_write_wins([source], [target]) == [target]

    def test_union_order_is_target_then_source_only(self):
        a = build_todo(todo_id="merge0000001")
        b = build_todo(todo_id="merge0000002")
        c = build_todo(todo_id="merge0000003")
        merged = merge_last_write_wins([c, a], [a, b])
        assert [t.id for t in merged] == ["merge0000001", "merge0000002", "merge0000003"]

    def test_empty_sides(self):
        todo = build_todo()
        assert merge_last_write_wins([], []) == []
        assert merge_last_write_wins([todo], []) == [todo]
        assert merge_last_write_wins([], [todo]) == [todo]


class TestSyncTodos:
    def test_conflict_resolves_to_newer_on_both_sides(self, paths):
        json_path, md_path, json_config, md_config = paths
        base = build_todo(todo_id="shared000001", title="Draft")
        JsonRepository(json_path).save(base)
        MarkdownRepository(md_path).save(
            build_todo(todo_id="shared000001", title="Final", updated_at=base.updated_at + 60_000)
        )
        JsonRepository(json_path).save(build_todo(todo_id="jsononly0001", title="Only in JSON"))

        result = sync_todos(json_config, md_config)

        assert result.performed
        assert (result.source_count, result.target_count, result.merged_count) == (2, 1, 2)
        for repo in (JsonRepository(json_path), MarkdownRepository(md_path)):
            assert repo.find_by_id("shared000001").title == "Final"
            assert repo.find_by_id("jsononly0001").title == "Only in JSON"

    def test_both_sides_equal_afterwards(self, paths):
        json_path, md_path, json_config, md_config = paths
        JsonRepository(json_path).save(build_todo(todo_id="left00000001", description="a\nb"))
        MarkdownRepository(md_path).save(build_todo(todo_id="right0000001", due_date=1_800_000_000_000))

        sync_todos(json_config, md_config)

        json_side = sorted_by_id(JsonRepository(json_path).find_all())
        md_side = sorted_by_id(MarkdownRepository(md_path).find_all())
        assert json_side == md_side
        assert len(json_side) == 2

    def test_is_idempotent(self, paths):
        json_path, md_path, json_config, md_config = paths
        JsonRepository(json_path).save(build_todo(todo_id="idem00000001"))
        MarkdownRepository(md_path).save(build_todo(todo_id="idem00000002"))

        sync_todos(json_config, md_config)
        first_json = json_path.read_text(encoding="utf-8")
        first_md = md_path.read_text(encoding="utf-8")
        for _ in range(2):
            result = sync_todos(json_config, md_config)
            assert result.merged_count == 2
        assert json_path.read_text(encoding="utf-8") == first_json
        assert md_path.read_text(encoding="utf-8") == first_md

    def test_round_trip_back_and_forth_is_stable(self, paths):
        json_path, md_path, json_config, md_config = paths
        JsonRepository(json_path).save(build_todo(todo_id="both00000001", title="Old"))
        JsonRepository(json_path).save(build_todo(todo_id="json00000001", description="  indented\nplain"))
        MarkdownRepository(md_path).save(build_todo(todo_id="both00000001", title="New", updated_at=1_700_000_000_500))
        MarkdownRepository(md_path).save(build_todo(todo_id="md0000000001", status="completed"))

        sync_todos(json_config, md_config)
        after_first = sorted_by_id(JsonRepository(json_path).find_all())
        sync_todos(md_config, json_config)
        sync_todos(json_config, md_config)

        assert len(after_first) == 3
        assert sorted_by_id(JsonRepository(json_path).find_all()) == after_first
        assert sorted_by_id(MarkdownRepository(md_path).find_all()) == after_first

    def test_comment_description_survives_sync_into_markdown(self, paths):
        json_path, md_path, json_config, md_config = paths
        todo = build_todo(description="<!-- x -->")
        JsonRepository(json_path).save(todo)

        sync_todos(json_config, md_config)

        assert MarkdownRepository(md_path).find_all() == [todo]
        assert sync_todos(md_config, json_config).merged_count == 1

    @pytest.mark.parametrize("corrupt_side", ["source", "target"])
    def test_corrupt_backend_aborts_before_writing(self, paths, corrupt_side):
        json_path, md_path, json_config, md_config = paths
        JsonRepository(json_path).save(build_todo(todo_id="keep00000001"))
        MarkdownRepository(md_path).save(build_todo(todo_id="keep00000002"))
        if corrupt_side == "source":
            json_path.write_text("[oops", encoding="utf-8")
        else:
            md_path.write_text("## Completed\n\n- [x] No metadata\n", encoding="utf-8")
        before = {p: p.read_text(encoding="utf-8") for p in (json_path, md_path)}
        manager = ConfigManager()

        with pytest.raises(TodoRepositoryError):
            sync_todos(json_config, md_config, manager)

        assert {p: p.read_text(encoding="utf-8") for p in (json_path, md_path)} == before
        assert manager.read_config() is None

    def test_same_backend_is_rejected_without_changes(self, paths):
        json_path, _, json_config, _ = paths
        JsonRepository(json_path).save(build_todo())
        before = json_path.read_text(encoding="utf-8")
        manager = ConfigManager()

        result = sync_todos(json_config, JsonProviderConfig(file_path=str(json_path)), manager)

        assert not result.performed
        assert "same database" in result.message
        assert json_path.read_text(encoding="utf-8") == before
        assert manager.read_config() is None

    def test_memory_to_memory_is_rejected(self):
        result = sync_todos(MemoryProviderConfig(), MemoryProviderConfig())
        assert not result.performed

    def test_target_becomes_current(self, paths):
        _, _, json_config, md_config = paths
        manager = ConfigManager()
        sync_todos(json_config, md_config, manager)
        assert manager.get_data_provider_config() == md_config

    def test_empty_memory_source_keeps_target(self, paths):
        _, md_path, _, md_config = paths
        MarkdownRepository(md_path).save(build_todo())
        result = sync_todos(MemoryProviderConfig(), md_config)
        assert result.performed
        assert result.source_count == 0
        assert MarkdownRepository(md_path).count() == 1

    def test_missing_files_sync_to_empty(self, paths):
        json_path, md_path, json_config, md_config = paths
        result = sync_todos(json_config, md_config)
        assert result.merged_count == 0
        assert JsonRepository(json_path).find_all() == []
        assert MarkdownRepository(md_path).find_all() == []


class TestSyncCurrentWith:
    def test_uses_current_config_as_source(self, paths):
        json_path, md_path, json_config, md_config = paths
        manager = ConfigManager()
        manager.set_data_provider_config(json_config)
        JsonRepository(json_path).save(build_todo())

        result = sync_current_with(md_config, manager)

        assert result.source_count == 1
        assert MarkdownRepository(md_path).count() == 1
        assert manager.get_data_provider_config() == md_config
