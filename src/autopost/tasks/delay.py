# src/autopost/tasks/delay.py

from __future__ import annotations

import re
from typing import Final

DEFAULT_DELAY_MS: Final = 60_000

_UNIT_MS: Final = {
    "s": 1_000,
    "m": 60 * 1_000,
    "h": 60 * 60 * 1_000,
    "d": 24 * 60 * 60 * 1_000,
}

# Longest period a task may have. Larger inputs are clamped to it.
MAX_DELAY_MS: Final = 365 * _UNIT_MS["d"]

_TOKEN_RE = re.compile(r"(\d+)([smhd])", re.IGNORECASE)
_PLAIN_RE = re.compile(r"\s*\+?(\d+)\s*")


def _digits_to_int(digits: str) -> int:
    # int() refuses strings past the interpreter's digit limit; those are
    # far above MAX_DELAY_MS anyway.
    try:
        return int(digits)
    except ValueError:
        return MAX_DELAY_MS + 1


def parse_delay(text: str | None) -> int:
    """
    Parse a human delay such as "1h30m", "2d" or "90" into milliseconds.

    - every "<int><unit>" token (s/m/h/d, any case) is summed; other text is ignored
    - with no usable token, the whole string is read as a plain millisecond count
    - anything else (or a total of zero) gives DEFAULT_DELAY_MS
    - totals above MAX_DELAY_MS are clamped to it

    Never raises and never returns a value below 1.
    """
    raw = str(text or "")

    total = 0
    for value, unit in _TOKEN_RE.findall(raw):
        total += _digits_to_int(value) * _UNIT_MS[unit.lower()]
        if total > MAX_DELAY_MS:
            break

    if total == 0:
        plain = _PLAIN_RE.fullmatch(raw)
        if plain is not None:
            total = _digits_to_int(plain.group(1))

    if total <= 0:
        return DEFAULT_DELAY_MS
    return min(total, MAX_DELAY_MS)


def format_delay(ms: int) -> str:
    """Render milliseconds back into the "1d2h3m4s" form (sub-second rest as "ms")."""
    ms = max(0, int(ms))
    parts: list[str] = []
    for unit in ("d", "h", "m", "s"):
        size = _UNIT_MS[unit]
        n, ms = divmod(ms, size)
        if n:
            parts.append(f"{n}{unit}")
    if ms or not parts:
        parts.append(f"{ms}ms")
    return "".join(parts)
