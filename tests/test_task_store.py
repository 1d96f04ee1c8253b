# tests/test_task_store.py

from __future__ import annotations

from pathlib import Path

import pytest

from autopost.core.errors import StoreError
from autopost.db import SQLiteStore
from autopost.tasks.task_models import Embed
from autopost.tasks.task_store import TaskStore, next_free_id


def _add(store: TaskStore, name: str = "t", destination: str = "!room:x") -> int:
    return store.add_task(name=name, message=f"hello from {name}", destination=destination, period_ms=1000)


def test_next_free_id() -> None:
    assert next_free_id([]) == 1
    assert next_free_id([1, 2, 3]) == 4
    assert next_free_id([1, 3]) == 2
    assert next_free_id([2, 3]) == 1


def test_add_get_and_defaults(task_store: TaskStore) -> None:
    task_id = task_store.add_task(
        name="  promo ",
        message="Buy now\nsecond line",
        destination="!room:x",
        period_ms=5_400_000,
        embed=Embed(title="Sale", body="50% off", color="#ff8800"),
    )
    assert task_id == 1

    task = task_store.get_task(task_id)
    assert task is not None
    assert task.name == "promo"
    assert task.message == "Buy now\nsecond line"
    assert task.destination == "!room:x"
    assert task.period_ms == 5_400_000
    assert task.is_active is False
    assert task.last_run_at is None
    assert task.created_at > 0
    assert task.embed == Embed(title="Sale", body="50% off", color="#ff8800")

    assert task_store.get_task(999) is None


def test_deleted_id_is_reused(task_store: TaskStore) -> None:
    ids = [_add(task_store, n) for n in ("a", "b", "c")]
    assert ids == [1, 2, 3]

    assert task_store.delete_task(2) is True
    assert _add(task_store, "d") == 2
    assert _add(task_store, "e") == 4


def test_active_flag_and_last_run(task_store: TaskStore) -> None:
    a = _add(task_store, "a")
    b = _add(task_store, "b")

    assert task_store.set_task_active(b, True) is True
    assert task_store.set_task_active(42, True) is False
    assert [t.id for t in task_store.list_active_tasks()] == [b]
    assert [t.id for t in task_store.list_tasks()] == [a, b]

    task_store.set_task_last_run(a, 1234.5)
    task = task_store.get_task(a)
    assert task is not None
    assert task.last_run_at == 1234.5


def test_delete_missing_is_false(task_store: TaskStore) -> None:
    assert task_store.delete_task(7) is False


def test_rejects_bad_input(task_store: TaskStore) -> None:
    with pytest.raises(ValueError):
        task_store.add_task(name="x", message="m", destination="  ", period_ms=1000)
    with pytest.raises(ValueError):
        task_store.add_task(name="x", message="m", destination="!r:x", period_ms=0)
    with pytest.raises(ValueError):
        task_store.add_task(name="x", message="m", destination="!r:x", period_ms=10**30)
    assert task_store.list_tasks() == []


def test_survives_reopen(tmp_path: Path) -> None:
    db = tmp_path / "db.sqlite3"
    first = TaskStore(db)
    task_id = _add(first, "persisted")
    first.set_task_active(task_id, True)

    second = TaskStore(db)
    task = second.get_task(task_id)
    assert task is not None
    assert task.is_active is True


def test_unusable_path_raises_store_error(tmp_path: Path) -> None:
    # A directory where the database file should be.
    db = tmp_path / "is_a_dir"
    db.mkdir()
    with pytest.raises(StoreError):
        TaskStore(db)


def test_base_store_requires_a_schema(tmp_path: Path) -> None:
    with pytest.raises(TypeError):
        SQLiteStore(tmp_path / "db.sqlite3")
