# src/autopost/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The scheduler and the responder index depend on Protocols instead of concrete
implementations. This keeps connectors/storage swappable and makes testing easier.
"""

from typing import Any, Protocol

from ..responders.responder_models import Responder
from ..tasks.task_models import Embed, MessagePayload, Task


class OutboundMessenger(Protocol):
    """
    Connector-side port: the send capability.

    resolve_destination() turns an opaque destination id (a Matrix room id, ...)
    into whatever handle the connector needs, or None if it cannot be reached.
    send() delivers a payload to that handle and raises SendError on failure.
    """

    async def resolve_destination(self, destination: str) -> Any | None: ...

    async def send(self, handle: Any, payload: MessagePayload) -> None: ...


class TaskRepo(Protocol):
    def add_task(
            self,
            *,
            name: str,
            message: str,
            destination: str,
            period_ms: int,
            embed: Embed | None = None,
    ) -> int: ...

    def get_task(self, task_id: int) -> Task | None: ...
    def list_tasks(self) -> list[Task]: ...
    def list_active_tasks(self) -> list[Task]: ...
    def set_task_active(self, task_id: int, active: bool) -> bool: ...
    def set_task_last_run(self, task_id: int, ts: float | None = None) -> None: ...
    def delete_task(self, task_id: int) -> bool: ...


class ResponderRepo(Protocol):
    def add_responder(
            self,
            *,
            aliases: list[str] | tuple[str, ...],
            response: str,
            destination: str,
    ) -> Responder: ...

    def get_responder(self, responder_id: int) -> Responder | None: ...
    def list_responders(self) -> list[Responder]: ...
    def list_active_responders(self) -> list[Responder]: ...
    def set_responder_active(self, responder_id: int, active: bool) -> bool: ...
    def delete_responder(self, responder_id: int) -> bool: ...
