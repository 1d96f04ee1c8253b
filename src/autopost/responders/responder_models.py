# src/autopost/responders/responder_models.py

from __future__ import annotations

import functools
import re
from dataclasses import dataclass


@functools.lru_cache(maxsize=1024)
def alias_pattern(alias: str) -> re.Pattern[str]:
    """
    Case-insensitive whole-word pattern for an alias.

    The alias is matched literally; "whole word" means it is neither preceded
    nor followed by a word character, so aliases like "c++" or "!ping" work too.
    """
    return re.compile(rf"(?<!\w){re.escape(alias)}(?!\w)", re.IGNORECASE)


def normalize_aliases(aliases: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    """Strip aliases, drop empty ones and duplicates, keep declaration order."""
    out: list[str] = []
    seen: set[str] = set()
    for a in aliases:
        alias = str(a).strip()
        key = alias.lower()
        if not alias or key in seen:
            continue
        seen.add(key)
        out.append(alias)
    return tuple(out)


@dataclass(slots=True)
class Responder:
    id: int
    aliases: tuple[str, ...]
    response: str
    destination: str
    is_active: bool
    created_at: float

    def matching_alias(self, text: str) -> str | None:
        """Return the first alias (declaration order) found in text, if any."""
        for alias in self.aliases:
            if alias_pattern(alias).search(text):
                return alias
        return None
