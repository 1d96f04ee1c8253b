# src/autopost/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Embed:
    """Optional rich attachment sent along with the task text."""

    title: str
    body: str
    color: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "body": self.body, "color": self.color}

    @classmethod
    def from_dict(cls, raw: Any) -> Embed | None:
        if not isinstance(raw, dict):
            return None
        title = str(raw.get("title") or "").strip()
        body = str(raw.get("body") or "").strip()
        if not title and not body:
            return None
        return cls(title=title, body=body, color=str(raw.get("color") or "").strip())


@dataclass(slots=True, frozen=True)
class MessagePayload:
    """What the send capability delivers: text and/or an embed."""

    text: str
    embed: Embed | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and self.embed is None


@dataclass(slots=True)
class Task:
    id: int
    name: str
    message: str
    destination: str
    period_ms: int
    is_active: bool
    created_at: float

    last_run_at: float | None = None
    embed: Embed | None = None

    def payload(self) -> MessagePayload:
        return MessagePayload(text=self.message or "", embed=self.embed)
