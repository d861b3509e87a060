"""
MongoCache - Duration Parsing Tests
"""

from datetime import timedelta

import pytest

from mongocache.durations import parse_duration


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("+1 hour", timedelta(hours=1)),
        ("+10 days", timedelta(days=10)),
        ("+5 second", timedelta(seconds=5)),
        ("+5s", timedelta(seconds=5)),
        ("30 min", timedelta(minutes=30)),
        ("+2 Weeks", timedelta(weeks=2)),
        (90, timedelta(seconds=90)),
        (timedelta(minutes=3), timedelta(minutes=3)),
    ],
)
def test_parse_duration(value, expected) -> None:
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", [None, 0, -5, "+0 seconds", timedelta(0)])
def test_never_expires(value) -> None:
    assert parse_duration(value) is None


@pytest.mark.parametrize("value", ["tomorrow", "+5 fortnights", "5", True, [1]])
def test_invalid_durations(value) -> None:
    with pytest.raises(ValueError):
        parse_duration(value)
