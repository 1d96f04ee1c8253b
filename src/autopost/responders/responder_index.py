# src/autopost/responders/responder_index.py

from __future__ import annotations

"""
In-memory responder index: destination -> active responders, in store order.

The index is a cache of "active rows per destination" and never a second
source of truth:
- create() appends the new responder directly (no reload)
- deactivate/reactivate/delete mutate the store and then rebuild everything

No lock is held while a store call is in flight. Every successful store
mutation bumps a generation counter; a rebuild whose read started before the
latest mutation reads again before swapping, so a concurrent create() is never
dropped. match() reads whichever mapping is current; a rebuild swaps in a
freshly built mapping, so a failed reload keeps the old one.
"""

import asyncio
import logging

from ..core.errors import OpResult, StoreError
from ..core.ports import OutboundMessenger, ResponderRepo
from ..tasks.task_models import MessagePayload
from .responder_models import Responder, normalize_aliases

logger = logging.getLogger(__name__)


class ResponderIndex:
    def __init__(self, responder_store: ResponderRepo) -> None:
        self._store = responder_store
        self._by_destination: dict[str, list[Responder]] = {}
        self._generation = 0

    # ---- introspection ----

    def destinations(self) -> list[str]:
        return list(self._by_destination)

    def count(self) -> int:
        return sum(len(v) for v in self._by_destination.values())

    def responders_for(self, destination: str) -> list[Responder]:
        return list(self._by_destination.get(destination, ()))

    # ---- mutations ----

    async def rebuild(self) -> bool:
        while True:
            generation = self._generation
            try:
                rows = await asyncio.to_thread(self._store.list_active_responders)
            except StoreError:
                logger.exception("Error loading responders into the index")
                return False
            if generation == self._generation:
                break
            logger.debug("Responder store changed during reload; reading again.")

        fresh: dict[str, list[Responder]] = {}
        for responder in rows:
            fresh.setdefault(responder.destination, []).append(responder)
        self._by_destination = fresh
        logger.info("Loaded %d active responder(s) into the index.", len(rows))
        return True

    async def create(
        self, aliases: list[str] | tuple[str, ...], response: str, destination: str
    ) -> int | None:
        clean = normalize_aliases(aliases)
        response = (response or "").strip()
        destination = (destination or "").strip()
        if not clean or not response or not destination:
            logger.info("create: rejected responder (aliases=%s, destination=%r)", clean, destination)
            return None

        try:
            responder = await asyncio.to_thread(
                lambda: self._store.add_responder(
                    aliases=clean, response=response, destination=destination
                )
            )
        except StoreError:
            logger.exception("create: add_responder failed")
            return None

        self._generation += 1
        bucket = self._by_destination.setdefault(responder.destination, [])
        # A reload that read after the insert may already have it.
        if all(r.id != responder.id for r in bucket):
            bucket.append(responder)

        logger.info("Responder %s created for %s (aliases=%s).", responder.id, destination, ", ".join(clean))
        return responder.id

    async def deactivate(self, responder_id: int) -> OpResult:
        return await self._mutate_and_rebuild(
            "deactivate", responder_id, lambda rid: self._store.set_responder_active(rid, False)
        )

    async def reactivate(self, responder_id: int) -> OpResult:
        return await self._mutate_and_rebuild(
            "reactivate", responder_id, lambda rid: self._store.set_responder_active(rid, True)
        )

    async def delete(self, responder_id: int) -> OpResult:
        return await self._mutate_and_rebuild("delete", responder_id, self._store.delete_responder)

    async def _mutate_and_rebuild(self, op: str, responder_id: int, mutate) -> OpResult:
        responder_id = int(responder_id)
        try:
            changed = await asyncio.to_thread(mutate, responder_id)
        except StoreError:
            logger.exception("%s: store update failed responder_id=%s", op, responder_id)
            return OpResult.STORE_FAILURE

        if not changed:
            logger.info("%s: responder %s not found", op, responder_id)
            return OpResult.NOT_FOUND

        self._generation += 1
        if not await self.rebuild():
            logger.warning("Responder %s: %s stored, but the index reload failed.", responder_id, op)
        logger.info("Responder %s: %s done.", responder_id, op)
        return OpResult.OK

    # ---- matching ----

    def match(self, destination: str, text: str) -> Responder | None:
        """
        First responder (index order) with an alias (declaration order) that
        occurs in text as a case-insensitive whole word. At most one per message.
        """
        responders = self._by_destination.get(destination)
        if not responders or not text:
            return None
        for responder in responders:
            if responder.matching_alias(text) is not None:
                return responder
        return None

    async def respond(
        self, destination: str, text: str, messenger: OutboundMessenger
    ) -> Responder | None:
        """Match and send the canned reply once. Send failures are logged, not raised."""
        responder = self.match(destination, text)
        if responder is None:
            return None

        try:
            handle = await messenger.resolve_destination(destination)
            if handle is None:
                logger.warning("Responder %s: destination %s not reachable", responder.id, destination)
                return responder
            await messenger.send(handle, MessagePayload(text=responder.response))
            logger.info("Responder %s triggered in %s", responder.id, destination)
        except Exception:
            logger.exception("Failed to send responder %s message", responder.id)
        return responder
