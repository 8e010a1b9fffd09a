"""Clock capability: the single source of "now" for time-dependent rules.

All lifecycle timestamps are naive UTC, matching the columns they are
compared against.
"""

from collections.abc import Callable
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from stayfinder.config import settings

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current instant as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_clock() -> Clock:
    """FastAPI dependency returning the clock used by request handlers.

    Tests replace it through ``app.dependency_overrides[get_clock]``.
    """
    return utcnow


def parse_wall_clock(value: str) -> time:
    """Parse an ``HH:MM`` wall-clock string into a :class:`datetime.time`.

    Raises:
        ValueError: If the string is not a valid 24-hour ``HH:MM`` time.
    """
    hour_str, sep, minute_str = value.strip().partition(":")
    if not sep or not hour_str.isdigit() or not minute_str.isdigit():
        raise ValueError(f"Invalid wall-clock time {value!r}, expected HH:MM")
    return time(int(hour_str), int(minute_str))


def cutoff_instant(day: date, wall_clock: str, tz_name: str | None = None) -> datetime:
    """Combine a calendar date with an ``HH:MM`` wall-clock into a naive UTC instant.

    The wall-clock is read in ``tz_name`` (default ``settings.booking_timezone``)
    with seconds zeroed.
    """
    tz = ZoneInfo(tz_name or settings.booking_timezone)
    local = datetime.combine(day, parse_wall_clock(wall_clock), tzinfo=tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)
