# tests/fakes.py

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from typing import Any

from autopost.core.errors import SendError, StoreError
from autopost.core.ports import OutboundMessenger
from autopost.tasks.task_models import MessagePayload


@dataclass(slots=True)
class SentMessage:
    destination: Any
    payload: MessagePayload

    @property
    def text(self) -> str:
        return self.payload.text


@dataclass(slots=True)
class FakeMessenger(OutboundMessenger):
    """
    Fake send capability used by scheduler/responder tests.

    - destinations listed in `unknown` do not resolve
    - `fail_sends` makes every send raise SendError (after recording the attempt)
    - `delay_s` makes sends slow, to exercise overlap/shutdown paths
    """

    sent: list[SentMessage] = field(default_factory=list)
    attempts: int = 0
    unknown: set[str] = field(default_factory=set)
    fail_sends: bool = False
    delay_s: float = 0.0

    async def resolve_destination(self, destination: str) -> str | None:
        if not destination or destination in self.unknown:
            return None
        return destination

    async def send(self, handle: Any, payload: MessagePayload) -> None:
        self.attempts += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.fail_sends:
            raise SendError(f"send to {handle} rejected")
        self.sent.append(SentMessage(destination=handle, payload=payload))

    def texts_to(self, destination: str) -> list[str]:
        return [m.text for m in self.sent if m.destination == destination]


class FlakyStore:
    """
    Wraps a real store and makes selected methods raise StoreError.

    `broken` holds method names; everything else is delegated.
    """

    def __init__(self, inner: Any, *broken: str) -> None:
        self._inner = inner
        self.broken: set[str] = set(broken)

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._inner, name)
        if name in self.broken:

            def fail(*args: Any, **kwargs: Any) -> Any:
                raise StoreError(f"{name}: database is locked")

            return fail
        return attr


class GatedStore:
    """
    Wraps a real responder store; the first list_active_responders() call
    blocks (in its worker thread) until `release` is set.

    `entered` is set once that call has read its rows.
    """

    def __init__(self, inner: Any) -> None:
        self._inner = inner
        self.entered = threading.Event()
        self.release = threading.Event()
        self.reads = 0

    def list_active_responders(self) -> Any:
        rows = self._inner.list_active_responders()
        self.reads += 1
        if self.reads == 1:
            self.entered.set()
            self.release.wait(5)
        return rows

    def __getattr__(self, name: str) -> Any:
        return getattr(self._inner, name)
