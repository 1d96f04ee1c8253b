# src/autopost/core/errors.py

from __future__ import annotations

from enum import StrEnum


class StoreError(RuntimeError):
    """Persistent store could not be reached or rejected a query."""


class SendError(RuntimeError):
    """Transport rejected an outbound message or timed out."""


class OpResult(StrEnum):
    """
    Outcome of an explicit (command-driven) operation.

    NOT_ACTIVE is a no-op signal, not an error: stopping something that is
    not running leaves everything as it was.
    """

    OK = "ok"
    NOT_FOUND = "not_found"
    DESTINATION_NOT_FOUND = "destination_not_found"
    NOT_ACTIVE = "not_active"
    STORE_FAILURE = "store_failure"

    @property
    def ok(self) -> bool:
        return self is OpResult.OK
