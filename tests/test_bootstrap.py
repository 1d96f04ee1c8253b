# tests/test_bootstrap.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from autopost.cli.bootstrap import create_initial_state
from autopost.core.errors import StoreError

from .fakes import FakeMessenger


def test_creates_state_and_data_dir(settings: SimpleNamespace, tmp_path: Path) -> None:
    settings.data_dir = tmp_path / "nested" / "data"
    settings.db_path = settings.data_dir / "autopost.sqlite3"

    state = create_initial_state(settings=settings, messenger=FakeMessenger())

    assert settings.db_path.exists()
    assert state.task_store.list_tasks() == []
    assert state.responders.count() == 0


def test_unusable_data_dir_raises_store_error(settings: SimpleNamespace, tmp_path: Path) -> None:
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", "utf-8")
    settings.data_dir = blocker / "data"
    settings.db_path = settings.data_dir / "autopost.sqlite3"

    with pytest.raises(StoreError):
        create_initial_state(settings=settings, messenger=FakeMessenger())
