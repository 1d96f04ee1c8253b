# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from autopost.core.state import AppState
from autopost.responders.responder_index import ResponderIndex
from autopost.responders.responder_store import ResponderStore
from autopost.tasks.task_scheduler import TaskScheduler
from autopost.tasks.task_store import TaskStore

from .fakes import FakeMessenger


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="autopost-test",
        data_dir=tmp_path,
        db_path=tmp_path / "autopost.sqlite3",
        command_prefix=".",
        owner_ids=["@owner:example.org"],
        console_enabled=False,
        matrix_enabled=False,
        shutdown_timeout=1.0,
    )


@pytest.fixture()
def task_store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.db_path)


@pytest.fixture()
def responder_store(settings: SimpleNamespace) -> ResponderStore:
    return ResponderStore(settings.db_path)


@pytest.fixture()
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    task_store: TaskStore,
    responder_store: ResponderStore,
    messenger: FakeMessenger,
) -> AppState:
    """
    AppState wired with a fake messenger.

    NOTE: We keep real SQLite stores here because their correctness is part
    of what we want to test.
    """
    return AppState(
        settings=settings,
        task_store=task_store,
        responder_store=responder_store,
        messenger=messenger,
        scheduler=TaskScheduler(task_store, messenger),
        responders=ResponderIndex(responder_store),
    )
