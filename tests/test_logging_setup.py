# tests/test_logging_setup.py

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from autopost.logging_setup import LOG_FILE_NAME, _ConsoleNoiseFilter, setup_logging


@pytest.fixture()
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        if h not in handlers:
            h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_keeps_app_logs_and_hides_library_noise() -> None:
    f = _ConsoleNoiseFilter()
    assert f.filter(_record("autopost.tasks.task_scheduler", logging.DEBUG))
    assert not f.filter(_record("nio.rooms", logging.WARNING))
    assert not f.filter(_record("py.warnings", logging.WARNING))
    assert f.filter(_record("aiohttp.client", logging.ERROR))
    assert not f.filter(_record("autopostish", logging.INFO))


def test_setup_logging_writes_file(tmp_path: Path, restore_root_logger: None) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs")
    assert log_file == tmp_path / "logs" / LOG_FILE_NAME

    logging.getLogger("autopost.test").info("hello file")
    for h in logging.getLogger().handlers:
        h.flush()
    assert "hello file" in log_file.read_text("utf-8")


def test_setup_logging_survives_unusable_dir(tmp_path: Path, restore_root_logger: None) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", "utf-8")

    assert setup_logging(log_dir=blocker / "logs") is None
    assert len(logging.getLogger().handlers) == 1
