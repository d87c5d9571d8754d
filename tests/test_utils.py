from __future__ import annotations

import datetime as dt

import pytest

from tgrelay.utils import STRIKE_MARK, parse_duration, parse_tj_map, strike


def test_strike_empty_stays_empty() -> None:
    assert strike("") == ""


def test_strike_marks_before_each_char_and_once_after() -> None:
    struck = strike("abc")

    assert struck == "\u0336a\u0336b\u0336c\u0336"
    assert struck.count(STRIKE_MARK) == 4
    assert struck.replace(STRIKE_MARK, "") == "abc"


def test_strike_keeps_multibyte_characters_whole() -> None:
    struck = strike("Тест")

    assert struck.count(STRIKE_MARK) == 5
    assert struck.replace(STRIKE_MARK, "") == "Тест"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("5m", dt.timedelta(minutes=5)),
        ("90s", dt.timedelta(seconds=90)),
        ("1h30m", dt.timedelta(hours=1, minutes=30)),
        ("1.5h", dt.timedelta(minutes=90)),
        ("300ms", dt.timedelta(milliseconds=300)),
        ("0", dt.timedelta(0)),
        ("-2m", dt.timedelta(minutes=-2)),
        (" 10m ", dt.timedelta(minutes=10)),
    ],
)
def test_parse_duration(raw, expected) -> None:
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "bogus", "5", "5 m", "m5", "1d"])
def test_parse_duration_rejects_garbage(raw) -> None:
    with pytest.raises(ValueError):
        parse_duration(raw)


@pytest.mark.parametrize("raw", ["2562048h", "100000000h", "-100000000h", "9223372037s"])
def test_parse_duration_rejects_values_beyond_int64_nanoseconds(raw) -> None:
    with pytest.raises(ValueError, match="invalid duration"):
        parse_duration(raw)


def test_parse_duration_accepts_the_largest_hour_count() -> None:
    assert parse_duration("2562047h") == dt.timedelta(hours=2562047)


def test_parse_tj_map_skips_malformed_rows() -> None:
    mapping = parse_tj_map("111,alice; 222 , bob;oops;x,carol;333,")

    assert mapping == {111: "alice", 222: "bob"}
    assert parse_tj_map("") == {}
