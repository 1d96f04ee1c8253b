# tests/test_commands.py

from __future__ import annotations

import pytest

from autopost.cli.commands import CommandRegistry, registry
from autopost.core.state import AppState
from autopost.tasks.delay import MAX_DELAY_MS

from .fakes import FakeMessenger


async def run(state: AppState, line: str) -> str:
    reply = await registry.handle(state, line, user_id="@owner:example.org", room_id="!room:x")
    assert reply is not None
    return reply


@pytest.mark.asyncio
async def test_registry_routes_and_aliases(state: AppState) -> None:
    reg = CommandRegistry()
    called: list[list[str]] = []

    async def handler(state, args, user_id, room_id):
        called.append(args)
        return "done"

    reg.register("a", handler, "a", aliases=["alpha"])

    assert await reg.handle(state, ".a x  y") == "done"
    assert await reg.handle(state, ".ALPHA z") == "done"
    assert called == [["x", "y"], ["z"]]


@pytest.mark.asyncio
async def test_registry_unknown_and_non_command(state: AppState) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, ".nope") or "")
    assert "Empty command" in (await reg.handle(state, ".") or "")
    assert await reg.handle(state, "!a", prefix="!") is not None


@pytest.mark.asyncio
async def test_set_start_list_stop_delete(state: AppState, messenger: FakeMessenger) -> None:
    reply = await run(state, ".set promo|Buy now|!room:x|1h30m")
    assert "ID 1" in reply

    task = state.task_store.get_task(1)
    assert task is not None
    assert task.period_ms == 5_400_000
    assert task.embed is None

    assert await run(state, ".start 1") == "Task 1 started."
    listing = await run(state, ".list")
    assert "ID: 1" in listing and "ACTIVE" in listing and "1h30m" in listing

    assert await run(state, ".stop 1") == "Task 1 stopped."
    assert "not active" in await run(state, ".stop 1")

    assert await run(state, ".delete 1") == "Task 1 deleted."
    assert await run(state, ".list") == "No tasks stored."

    await state.scheduler.shutdown()


@pytest.mark.asyncio
async def test_set_with_embed_and_multiline(state: AppState) -> None:
    await run(state, ".set news|line one\nline two|!room:x|10m|Headline|Details here|#00ff00")

    task = state.task_store.get_task(1)
    assert task is not None
    assert task.message == "line one\nline two"
    assert task.embed is not None
    assert task.embed.title == "Headline"
    assert task.embed.color == "#00ff00"


@pytest.mark.asyncio
async def test_task_command_errors(state: AppState, messenger: FakeMessenger) -> None:
    assert (await run(state, ".start")).startswith("Usage:")
    assert await run(state, ".start abc") == "Task ID must be a number."
    assert "task not found" in await run(state, ".start 9")
    assert (await run(state, ".set only|three|parts")).startswith("Invalid format.")

    await run(state, ".set t|m|!gone:x|1m")
    messenger.unknown.add("!gone:x")
    assert "destination not found" in await run(state, ".start 1")


@pytest.mark.asyncio
async def test_responder_commands(state: AppState) -> None:
    reply = await run(state, ".addr hi/hello|Hello to you|!room:x")
    assert "ID 1" in reply
    assert state.responders.match("!room:x", "hello there") is not None

    listing = await run(state, ".listr")
    assert "Aliases: hi, hello" in listing

    assert await run(state, ".stopr 1") == "Responder 1 stopped."
    assert state.responders.match("!room:x", "hello") is None
    assert await run(state, ".startr 1") == "Responder 1 started."
    assert state.responders.match("!room:x", "hello") is not None

    assert await run(state, ".delr 1") == "Responder 1 deleted."
    assert "responder not found" in await run(state, ".delr 1")
    assert await run(state, ".listr") == "No responders stored."


@pytest.mark.asyncio
async def test_addr_validation(state: AppState) -> None:
    assert (await run(state, ".addr")).startswith("Usage:")
    assert (await run(state, ".addr hi|no destination")).startswith("Invalid format.")
    assert (await run(state, ".addr //|text|!room:x")).startswith("Invalid format:")
    assert await run(state, ".stopr x") == "Responder ID must be a number."


@pytest.mark.asyncio
async def test_set_with_oversized_delay_is_clamped(state: AppState) -> None:
    reply = await run(state, ".set big|m|!room:x|" + "9" * 30 + "d")
    assert "ID 1" in reply

    task = state.task_store.get_task(1)
    assert task is not None
    assert task.period_ms == MAX_DELAY_MS
