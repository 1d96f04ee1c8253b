# src/autopost/responders/responder_api.py

from __future__ import annotations

from .responder_models import Responder

PREVIEW_CHARS = 50


def parse_aliases(raw: str) -> list[str]:
    """Split "hi/hello / hey" into ["hi", "hello", "hey"], dropping empty parts."""
    return [a.strip() for a in (raw or "").split("/") if a.strip()]


def render_responder_list(responders: list[Responder]) -> str:
    if not responders:
        return "No responders stored."

    lines = ["=== AUTO RESPONDERS ==="]
    for i, r in enumerate(responders, start=1):
        status = "ACTIVE" if r.is_active else "INACTIVE"
        text = r.response.replace("\n", " ")
        preview = text if len(text) <= PREVIEW_CHARS else text[:PREVIEW_CHARS] + "..."
        lines.append(f"{i}. ID: {r.id} | Status: {status}")
        lines.append(f"   Aliases: {', '.join(r.aliases)}")
        lines.append(f"   Destination: {r.destination}")
        lines.append(f"   Response: {preview}")
        lines.append("")
    return "\n".join(lines).rstrip()
