"""Tests for the SQLite todo repository."""

import sqlite3
from datetime import datetime

import pytest

from todo_agent.exceptions import StoreConnectionError, StoreError
from todo_agent.persistence.models import Todo
from todo_agent.persistence.repository import TodoRepository


class TestCreateAndList:
    """create() followed by list_all()."""

    @pytest.mark.parametrize("text", ["Buy milk", "Ünïcödé tâsk", "  spaces kept  ", "x" * 2000])
    def test_created_text_listed_exactly_once(self, repository, text):
        repository.create("something else")
        repository.create(text)
        matches = [todo for todo in repository.list_all() if todo.text == text]
        assert len(matches) == 1

    def test_create_returns_new_id(self, repository):
        first = repository.create("one")
        second = repository.create("two")
        assert isinstance(first, int)
        assert second > first

    def test_ids_not_reused_after_delete(self, repository):
        first = repository.create("one")
        second = repository.create("two")
        repository.delete_by_id(second)
        third = repository.create("three")
        assert third not in (first, second)
        assert third > second

    def test_timestamps_assigned(self, repository):
        todo_id = repository.create("stamped")
        todo = next(t for t in repository.list_all() if t.id == todo_id)
        assert isinstance(todo.created_at, datetime)
        assert todo.created_at == todo.updated_at

    def test_list_all_empty(self, repository):
        assert repository.list_all() == []

    def test_list_all_insertion_order(self, repository):
        ids = [repository.create(text) for text in ("a", "b", "c")]
        assert [todo.id for todo in repository.list_all()] == ids

    def test_persists_across_connections(self, tmp_path):
        db_path = tmp_path / "persist.db"
        with TodoRepository(db_path) as repo:
            todo_id = repo.create("survive restart")
        with TodoRepository(db_path) as repo:
            assert [t.id for t in repo.list_all()] == [todo_id]


class TestSearch:
    """search() is a case-insensitive substring match."""

    @pytest.fixture
    def seeded(self, repository):
        repository.create("Buy milk")
        repository.create("Oat MILK for coffee")
        repository.create("Walk the dog")
        repository.create("Buttermilk pancakes")
        return repository

    def test_case_insensitive(self, seeded):
        upper = {t.id for t in seeded.search("MILK")}
        lower = {t.id for t in seeded.search("milk")}
        assert upper == lower
        assert len(upper) == 3

    def test_substring_anywhere(self, seeded):
        texts = [t.text for t in seeded.search("termil")]
        assert texts == ["Buttermilk pancakes"]

    def test_empty_query_matches_all(self, seeded):
        assert len(seeded.search("")) == 4

    def test_no_match(self, seeded):
        assert seeded.search("groceries") == []

    def test_like_wildcards_are_literal(self, seeded):
        seeded.create("100% done")
        assert [t.text for t in seeded.search("%")] == ["100% done"]
        assert seeded.search("_") == []

    def test_unicode_case_folding(self, repository):
        repository.create("STRASSE reparieren")
        repository.create("Ärger klären")
        assert len(repository.search("straße")) == 1
        assert len(repository.search("ärger")) == 1


class TestDelete:
    """delete_by_id()."""

    def test_delete_existing(self, repository):
        keep = repository.create("keep")
        drop = repository.create("drop")
        message = repository.delete_by_id(drop)
        assert str(drop) in message
        assert [t.id for t in repository.list_all()] == [keep]

    @pytest.mark.parametrize("missing_id", [0, 999, -1])
    def test_delete_missing_is_noop(self, repository, missing_id):
        repository.create("untouched")
        message = repository.delete_by_id(missing_id)
        assert isinstance(message, str)
        assert message
        assert len(repository.list_all()) == 1

    def test_delete_twice(self, repository):
        todo_id = repository.create("once")
        assert repository.delete_by_id(todo_id) == repository.delete_by_id(todo_id)


class TestConnection:
    """Initialization and error wrapping."""

    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "todos.db"
        with TodoRepository(db_path) as repo:
            repo.create("deep")
        assert db_path.exists()

    def test_in_memory(self):
        with TodoRepository(":memory:") as repo:
            todo_id = repo.create("volatile")
            assert repo.search("VOLATILE")[0].id == todo_id

    def test_unopenable_path(self, tmp_path):
        # A directory cannot be opened as a database file
        directory = tmp_path / "a_directory"
        directory.mkdir()
        repo = TodoRepository(directory)
        with pytest.raises(StoreConnectionError):
            repo.initialize()

    def test_schema_is_idempotent(self, tmp_path):
        db_path = tmp_path / "twice.db"
        TodoRepository(db_path).initialize()
        repo = TodoRepository(db_path)
        repo.initialize()
        assert repo.list_all() == []
        repo.close()

    def test_reopens_after_close(self, repository):
        repository.create("before close")
        repository.close()
        assert len(repository.list_all()) == 1

    def test_operational_error_wrapped(self, repository):
        repository.conn.execute("DROP TABLE todos")
        with pytest.raises(StoreConnectionError):
            repository.list_all()

    def test_integrity_error_wrapped(self, repository):
        with pytest.raises(StoreError) as exc_info:
            repository.create(None)  # todo column is NOT NULL
        assert not isinstance(exc_info.value, StoreConnectionError)
        assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)

    def test_oversized_id_wrapped(self, repository):
        with pytest.raises(StoreError) as exc_info:
            repository.delete_by_id(2**64)
        assert not isinstance(exc_info.value, StoreConnectionError)
        assert isinstance(exc_info.value.__cause__, OverflowError)

    def test_lone_surrogate_wrapped(self, repository):
        with pytest.raises(StoreError) as exc_info:
            repository.create("milk \ud800")
        assert isinstance(exc_info.value.__cause__, UnicodeEncodeError)
        assert repository.list_all() == []


class TestTodoModel:
    """Tests for the Todo dataclass."""

    def test_from_row(self):
        todo = Todo.from_row((3, "text", "2024-01-02T03:04:05", "2024-01-02T03:04:06"))
        assert todo.id == 3
        assert todo.text == "text"
        assert todo.created_at == datetime(2024, 1, 2, 3, 4, 5)
        assert todo.updated_at == datetime(2024, 1, 2, 3, 4, 6)

    def test_to_dict_uses_column_names(self):
        todo = Todo(id=1, text="milk", created_at=datetime(2024, 1, 1), updated_at=datetime(2024, 1, 1))
        assert todo.to_dict() == {
            "id": 1,
            "todo": "milk",
            "created_at": "2024-01-01T00:00:00",
            "updated_at": "2024-01-01T00:00:00",
        }
