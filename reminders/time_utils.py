"""
Time-of-day helpers.

All scheduling math works on minutes since midnight; ``HH:MM`` strings are
only the storage and wire format.
"""
import re
from datetime import date, datetime, time
from typing import NamedTuple, Union

import pytz

from .errors import InvalidFormat
from .scheduler_config import MINUTES_PER_DAY, TIME_PATTERN

_TIME_RE = re.compile(TIME_PATTERN)


class TimeOfDay(NamedTuple):
    hours: int
    minutes: int

    def __str__(self) -> str:
        return format_24h(self)


TimeLike = Union[TimeOfDay, str]


def is_valid_time(value) -> bool:
    return isinstance(value, str) and _TIME_RE.match(value) is not None


def parse(value, category=None, field=None) -> TimeOfDay:
    """Parse ``HH:MM`` (24-hour). Raises InvalidFormat on anything else."""
    if not is_valid_time(value):
        raise InvalidFormat(value, category=category, field=field)
    hours, minutes = value.split(":")
    return TimeOfDay(int(hours), int(minutes))


def _coerce(value: TimeLike) -> TimeOfDay:
    if isinstance(value, TimeOfDay):
        return value
    return parse(value)


def to_minutes(value: TimeLike) -> int:
    t = _coerce(value)
    return t.hours * 60 + t.minutes


def from_minutes(total: int) -> TimeOfDay:
    total %= MINUTES_PER_DAY
    return TimeOfDay(total // 60, total % 60)


def duration_wrapping(start: TimeLike, end: TimeLike) -> int:
    """
    Minutes from ``start`` to ``end``, wrapping past midnight.

    07:00 -> 23:00 is 960; 07:00 -> 00:30 is 1050 (sleep on the next day).
    Equal times count as a full day.
    """
    delta = to_minutes(end) - to_minutes(start)
    if delta > 0:
        return delta
    return delta + MINUTES_PER_DAY


def format_24h(value: TimeLike) -> str:
    t = _coerce(value)
    return f"{t.hours:02d}:{t.minutes:02d}"


def format_12h(value: TimeLike) -> str:
    """Display format only, e.g. ``7:05 AM``."""
    t = _coerce(value)
    suffix = "AM" if t.hours < 12 else "PM"
    hour = t.hours % 12 or 12
    return f"{hour}:{t.minutes:02d} {suffix}"


def at_local(day: date, value: TimeLike, tz) -> datetime:
    """Wall-clock ``value`` on ``day`` in ``tz`` as an aware datetime."""
    if isinstance(tz, str):
        tz = pytz.timezone(tz)
    t = _coerce(value)
    naive = datetime.combine(day, time(t.hours, t.minutes))
    return tz.normalize(tz.localize(naive))
