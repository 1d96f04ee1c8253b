# src/autopost/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..responders.responder_index import ResponderIndex
from ..responders.responder_store import ResponderStore
from ..tasks.task_scheduler import TaskScheduler
from ..tasks.task_store import TaskStore
from .ports import OutboundMessenger


@dataclass
class AppState:
    # Settings object (real Settings or a test namespace with the same attributes).
    settings: Any

    task_store: TaskStore
    responder_store: ResponderStore
    messenger: OutboundMessenger
    scheduler: TaskScheduler
    responders: ResponderIndex

    def close(self) -> None:
        """Release the stores. Call only after scheduler.shutdown()."""
        self.task_store.close()
        self.responder_store.close()
