# src/autopost/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime
from typing import Any

from ..core.dispatch import handle_inbound
from ..core.state import AppState
from ..tasks.task_models import MessagePayload

logger = logging.getLogger(__name__)

CONSOLE_USER = "console"
CONSOLE_ROOM = "console"


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleMessenger:
    """Send capability for local runs: every destination "exists" and sends are printed."""

    async def resolve_destination(self, destination: str) -> str | None:
        destination = (destination or "").strip()
        return destination or None

    async def send(self, handle: Any, payload: MessagePayload) -> None:
        lines = [payload.text] if payload.text else []
        if payload.embed is not None:
            color = f" ({payload.embed.color})" if payload.embed.color else ""
            lines.append(f"  | {payload.embed.title}{color}")
            lines.extend(f"  | {line}" for line in payload.embed.body.splitlines())
        _print_ts(f"[-> {handle}] " + "\n".join(lines))


def _split_target(line: str) -> tuple[str, str]:
    """
    "@<destination> text" simulates a message arriving in another destination;
    plain text arrives in the console room.
    """
    if line.startswith("@"):
        target, _, rest = line[1:].partition(" ")
        if target and rest.strip():
            return target, rest.strip()
    return CONSOLE_ROOM, line


def _start_stdin_reader(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[str | None]) -> None:
    """Blocking input() runs in a daemon thread so it never holds up shutdown."""

    def reader() -> None:
        while True:
            try:
                line = input()
            except (EOFError, KeyboardInterrupt):
                loop.call_soon_threadsafe(queue.put_nowait, None)
                return
            loop.call_soon_threadsafe(queue.put_nowait, line)

    threading.Thread(target=reader, name="console-stdin", daemon=True).start()


async def run_console_loop(state: AppState, stop_event: asyncio.Event) -> None:
    prefix = str(getattr(state.settings, "command_prefix", ".") or ".")
    logger.info("Console connector started.")
    _print_ts(
        f"[CONSOLE] Use {prefix}help for commands, '@<destination> text' to simulate "
        f"a message elsewhere, /exit to quit."
    )

    queue: asyncio.Queue[str | None] = asyncio.Queue()
    _start_stdin_reader(asyncio.get_running_loop(), queue)

    try:
        while not stop_event.is_set():
            getter = asyncio.ensure_future(queue.get())
            stopper = asyncio.ensure_future(stop_event.wait())
            done, pending = await asyncio.wait({getter, stopper}, return_when=asyncio.FIRST_COMPLETED)
            for fut in pending:
                fut.cancel()
            if getter not in done:
                break

            line = getter.result()
            if line is None:
                logger.info("Console EOF received, exiting.")
                break

            line = line.strip()
            if not line:
                continue
            if line.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            destination, text = _split_target(line)
            reply = await handle_inbound(
                state,
                text=text,
                sender=CONSOLE_USER,
                destination=destination,
                trusted=True,
            )
            if reply:
                _print_ts(reply)
    finally:
        stop_event.set()
        logger.info("Console connector finished.")
