"""General utility functions."""
import secrets
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo

from app.core.constants import QR_CODE_LENGTH


def make_pronounceable(length: int = QR_CODE_LENGTH) -> str:
    """Generate a pronounceable code using consonant-vowel pattern."""
    consonants = "BCDFGHJKLMNPQRSTVWXYZ"
    vowels = "AEIOU"

    code = ""
    for i in range(length):
        if i % 2 == 0:
            code += secrets.choice(consonants)
        else:
            code += secrets.choice(vowels)

    return code


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC timezone."""
    if dt.tzinfo is None:
        # Assume UTC if no timezone
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_timezone(dt: datetime, tz: ZoneInfo) -> datetime:
    """Convert datetime to specified timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def parse_time_of_day(value: str) -> time:
    """
    Parse an ``HH:MM`` string into a ``time``.

    Raises:
        ValueError: If the value is not a valid 24-hour time of day
    """
    if not isinstance(value, str):
        raise ValueError("Time of day must be a string in HH:MM format")

    parts = value.strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")

    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")

    return time(hour, minute)


def minutes_since_midnight(value: time) -> int:
    """Minutes elapsed since local midnight for a time of day."""
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def local_day_bounds(day: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """
    Return the UTC instants bounding a local calendar day.

    The end bound is exclusive (next local midnight), so DST days are 23 or 25 hours.
    """
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def previous_weekday(day: date) -> date:
    """Return the weekday (Mon-Fri) immediately before ``day``."""
    prior = day - timedelta(days=1)
    while prior.weekday() >= 5:
        prior -= timedelta(days=1)
    return prior
