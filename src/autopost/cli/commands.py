# src/autopost/cli/commands.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..core.errors import OpResult, StoreError
from ..core.state import AppState
from ..responders.responder_api import parse_aliases, render_responder_list
from ..tasks.task_api import create_task, render_task_list
from ..tasks.task_models import Embed

CommandHandler = Callable[[AppState, list[str], str | None, str | None], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Prefix-command registry used by connectors (.set, .start, .list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def names(self) -> list[str]:
        return list(self._help)

    async def handle(
        self,
        state: AppState,
        line: str,
        user_id: str | None = None,
        room_id: str | None = None,
        *,
        prefix: str = ".",
    ) -> str | None:
        """
        Handle a string like ".command args".
        Returns a reply string or None if not a command.

        Arguments are split on spaces only, so newlines inside a message
        survive for the pipe-separated commands.
        """
        if not prefix or not line.startswith(prefix):
            return None

        parts = [p for p in line[len(prefix):].strip().split(" ") if p]
        if not parts:
            return f"Empty command. Use {prefix}help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: {prefix}{name}.\n{self.build_help(prefix)}"

        return await handler(state, args, user_id, room_id)

    def build_help(self, prefix: str = ".") -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  {prefix}{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0])
    except ValueError:
        return None


def _split_pipes(args: list[str]) -> list[str]:
    return [p.strip() for p in " ".join(args).split("|")]


def _prefix(state: AppState) -> str:
    return str(getattr(state.settings, "command_prefix", ".") or ".")


_TASK_RESULT_TEXT = {
    OpResult.NOT_FOUND: "task not found",
    OpResult.DESTINATION_NOT_FOUND: "destination not found",
    OpResult.NOT_ACTIVE: "task is not active",
    OpResult.STORE_FAILURE: "storage error",
}

_RESPONDER_RESULT_TEXT = {
    OpResult.NOT_FOUND: "responder not found",
    OpResult.STORE_FAILURE: "storage error",
}


# ---- task commands ----


async def cmd_help(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    return registry.build_help(_prefix(state))


async def cmd_set(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    """
    .set <name>|<message>|<destination>|<delay>[|<title>|<body>|<color>]
    """
    usage = f"Usage: {_prefix(state)}set <name>|<message>|<destination>|<delay>[|<title>|<body>|<color>]"
    if not args:
        return usage

    parts = _split_pipes(args)
    if len(parts) < 4:
        return "Invalid format. " + usage

    name, message, destination, delay = parts[:4]
    if not destination:
        return "Invalid format: destination is empty. " + usage

    embed = None
    if len(parts) > 4:
        title = parts[4]
        body = parts[5] if len(parts) > 5 else ""
        color = parts[6] if len(parts) > 6 else ""
        embed = Embed.from_dict({"title": title, "body": body, "color": color})

    task_id = await create_task(
        state.task_store,
        name=name,
        message=message,
        destination=destination,
        delay=delay,
        embed=embed,
    )
    if task_id is None:
        return "Failed to create a new task."
    return f"New task created with ID {task_id}. Use {_prefix(state)}start {task_id} to start it."


async def cmd_start(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    if not args:
        return f"Usage: {_prefix(state)}start <task_id>"
    task_id = _parse_id(args)
    if task_id is None:
        return "Task ID must be a number."

    result = await state.scheduler.start(task_id)
    if result.ok:
        return f"Task {task_id} started."
    return f"Failed to start task {task_id}: {_TASK_RESULT_TEXT.get(result, result.value)}."


async def cmd_stop(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    if not args:
        return f"Usage: {_prefix(state)}stop <task_id>"
    task_id = _parse_id(args)
    if task_id is None:
        return "Task ID must be a number."

    result = await state.scheduler.stop(task_id)
    if result.ok:
        return f"Task {task_id} stopped."
    return f"Failed to stop task {task_id}: {_TASK_RESULT_TEXT.get(result, result.value)}."


async def cmd_delete(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    if not args:
        return f"Usage: {_prefix(state)}delete <task_id>"
    task_id = _parse_id(args)
    if task_id is None:
        return "Task ID must be a number."

    result = await state.scheduler.delete(task_id)
    if result.ok:
        return f"Task {task_id} deleted."
    return f"Failed to delete task {task_id}: {_TASK_RESULT_TEXT.get(result, result.value)}."


async def cmd_list(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    try:
        tasks = await asyncio.to_thread(state.task_store.list_tasks)
    except StoreError:
        logger.exception("list_tasks failed")
        return "Error while listing tasks."
    return render_task_list(tasks, set(state.scheduler.running_ids()))


# ---- responder commands ----


async def cmd_addr(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    """
    .addr <alias1>/<alias2>/...|<response>|<destination>
    """
    usage = f"Usage: {_prefix(state)}addr <alias1>/<alias2>/...|<response>|<destination>"
    if not args:
        return usage

    parts = _split_pipes(args)
    if len(parts) < 3:
        return "Invalid format. " + usage

    alias_str, response, destination = parts[:3]
    aliases = parse_aliases(alias_str)
    if not aliases or not response or not destination:
        return "Invalid format: aliases, response and destination are required. " + usage

    responder_id = await state.responders.create(aliases, response, destination)
    if responder_id is None:
        return "Failed to create a new responder."
    return f"New responder created with ID {responder_id}."


async def cmd_listr(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    try:
        responders = await asyncio.to_thread(state.responder_store.list_responders)
    except StoreError:
        logger.exception("list_responders failed")
        return "Error while listing responders."
    return render_responder_list(responders)


async def _responder_op(state: AppState, args: list[str], cmd: str, verb: str, op) -> str:
    if not args:
        return f"Usage: {_prefix(state)}{cmd} <responder_id>"
    responder_id = _parse_id(args)
    if responder_id is None:
        return "Responder ID must be a number."

    result = await op(responder_id)
    if result.ok:
        return f"Responder {responder_id} {verb}."
    return f"Failed to update responder {responder_id}: {_RESPONDER_RESULT_TEXT.get(result, result.value)}."


async def cmd_startr(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    return await _responder_op(state, args, "startr", "started", state.responders.reactivate)


async def cmd_stopr(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    return await _responder_op(state, args, "stopr", "stopped", state.responders.deactivate)


async def cmd_delr(state: AppState, args: list[str], user_id: str | None, room_id: str | None) -> str:
    return await _responder_op(state, args, "delr", "deleted", state.responders.delete)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "set", cmd_set, help_text="Create a task: set <name>|<message>|<destination>|<delay>[|title|body|color]."
)
registry.register("start", cmd_start, help_text="Start a task: start <id>.")
registry.register("stop", cmd_stop, help_text="Stop a task: stop <id>.")
registry.register("delete", cmd_delete, help_text="Stop and delete a task: delete <id>.")
registry.register("list", cmd_list, help_text="List all tasks.")
registry.register(
    "addr", cmd_addr, help_text="Create a responder: addr <alias1>/<alias2>|<response>|<destination>."
)
registry.register("listr", cmd_listr, help_text="List all responders.")
registry.register("startr", cmd_startr, help_text="Activate a responder: startr <id>.")
registry.register("stopr", cmd_stopr, help_text="Deactivate a responder: stopr <id>.")
registry.register("delr", cmd_delr, help_text="Delete a responder: delr <id>.")
