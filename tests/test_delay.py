# tests/test_delay.py

from __future__ import annotations

import pytest

from autopost.tasks.delay import DEFAULT_DELAY_MS, MAX_DELAY_MS, format_delay, parse_delay


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1h30m", 5_400_000),
        ("90", 90),
        ("2d", 2 * 24 * 60 * 60 * 1000),
        ("45s", 45_000),
        ("1H 15M", 75 * 60 * 1000),
        ("every 10m please", 600_000),
        ("  250  ", 250),
    ],
)
def test_parse_delay_values(text: str, expected: int) -> None:
    assert parse_delay(text) == expected


@pytest.mark.parametrize("text", ["", "0s", "0", "-5", "soon", "abc123", None, "1x"])
def test_parse_delay_falls_back_to_one_minute(text) -> None:
    assert parse_delay(text) == DEFAULT_DELAY_MS == 60_000


def test_parse_delay_is_total_and_positive() -> None:
    for text in ["\x00", "9" * 50, "1h-30m", "m5", "🙂", "1s" * 100, "1" * 5000 + "s", "7" * 5000]:
        value = parse_delay(text)
        assert isinstance(value, int)
        assert value > 0


def test_format_delay() -> None:
    assert format_delay(5_400_000) == "1h30m"
    assert format_delay(60_000) == "1m"
    assert format_delay(90) == "90ms"
    assert format_delay(86_401_000) == "1d1s"


@pytest.mark.parametrize("text", ["1" * 5000 + "s", "9" * 30 + "d", "400d", "9" * 5000, "1d" * 500])
def test_parse_delay_clamps_huge_values(text: str) -> None:
    assert parse_delay(text) == MAX_DELAY_MS


def test_parse_delay_keeps_values_up_to_the_cap() -> None:
    assert parse_delay("365d") == MAX_DELAY_MS
    assert parse_delay("364d23h") < MAX_DELAY_MS
