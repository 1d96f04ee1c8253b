# src/autopost/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the stores, the messenger, the scheduler and the responder index into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.errors import StoreError
from ..core.ports import OutboundMessenger
from ..core.state import AppState
from ..responders.responder_index import ResponderIndex
from ..responders.responder_store import ResponderStore
from ..tasks.task_scheduler import TaskScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    dirs = [settings.data_dir, settings.db_path.parent]
    if getattr(settings, "matrix_enabled", False):
        dirs.append(settings.matrix_store_path)
    for path in dirs:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"cannot create data directory {path}: {e}") from e


def create_messenger(settings) -> OutboundMessenger:
    """Matrix when enabled, otherwise the printing console messenger."""
    if getattr(settings, "matrix_enabled", False):
        from ..connectors.matrix_connector import MatrixConnector

        return MatrixConnector(settings)

    from ..connectors.console_connector import ConsoleMessenger

    return ConsoleMessenger()


def create_initial_state(*, settings=None, messenger: OutboundMessenger | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Opening the stores creates/migrates the schema; a StoreError raised here
    means the database is unusable and startup must abort.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if messenger is None:
        messenger = create_messenger(settings)

    task_store = TaskStore(settings.db_path)
    responder_store = ResponderStore(settings.db_path)

    return AppState(
        settings=settings,
        task_store=task_store,
        responder_store=responder_store,
        messenger=messenger,
        scheduler=TaskScheduler(task_store, messenger),
        responders=ResponderIndex(responder_store),
    )
