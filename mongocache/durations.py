"""
MongoCache - Duration Parsing

Converts expiry specifications into timedeltas.

Accepted forms:
- "+1 hour", "+10 days", "+5 second", "+5s", "30 min"
- int / float seconds
- datetime.timedelta
- None, 0 or negative values mean "never expires" and yield None
"""

import re
from datetime import timedelta

_DURATION_RE = re.compile(r"^\+?\s*(\d+)\s*([a-z]+)$")

_UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
}

Duration = str | int | float | timedelta | None


def parse_duration(value: Duration) -> timedelta | None:
    """
    Parse an expiry specification.

    Args:
        value: Duration string, seconds, timedelta or None

    Returns:
        Positive timedelta, or None when the value means "never expires"

    Raises:
        ValueError: If a string cannot be parsed or the type is unsupported
    """
    if value is None:
        return None

    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")

    if isinstance(value, timedelta):
        return value if value > timedelta(0) else None

    if isinstance(value, int | float):
        return timedelta(seconds=value) if value > 0 else None

    if isinstance(value, str):
        match = _DURATION_RE.match(value.strip().lower())
        if match is None:
            raise ValueError(f"Invalid duration string: {value!r}")

        amount, unit = int(match.group(1)), match.group(2)
        if unit not in _UNIT_SECONDS:
            raise ValueError(f"Unknown duration unit '{unit}' in {value!r}")

        seconds = amount * _UNIT_SECONDS[unit]
        return timedelta(seconds=seconds) if seconds > 0 else None

    raise ValueError(f"Unsupported duration type: {type(value).__name__}")
