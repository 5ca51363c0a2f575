"""
Time Interval Utility.

Pure helpers for converting ``HH:mm`` strings to minute offsets and for
half-open interval arithmetic. ``[start, end)`` never includes ``end``, so a
session ending at 10:00 and another starting at 10:00 do not overlap.
"""

import re
from datetime import date as date_type, datetime
from typing import Optional, Tuple, Union

from .errors import InvalidInputError

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
MINUTES_PER_DAY = 24 * 60


def to_minutes(hhmm: str) -> int:
    """Convert ``HH:mm`` (24h) to minutes after midnight."""
    if not isinstance(hhmm, str):
        raise InvalidInputError(f"Time must be an HH:mm string, got {hhmm!r}")
    match = TIME_PATTERN.match(hhmm.strip())
    if not match:
        raise InvalidInputError(f"Malformed time {hhmm!r}, expected HH:mm")
    return int(match.group(1)) * 60 + int(match.group(2))


def from_minutes(minutes: int) -> str:
    """Inverse of :func:`to_minutes`. Only valid inside a single day."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidInputError(f"Minute offset {minutes} is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(hhmm: str) -> str:
    """Return the zero-padded form, e.g. ``9:05`` -> ``09:05``."""
    return from_minutes(to_minutes(hhmm))


def span(hhmm: str, duration_minutes: int) -> Tuple[int, int]:
    """Half-open ``(start, end)`` minute pair for a slot."""
    start = to_minutes(hhmm)
    return start, start + duration_minutes


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    # Touching edges do not overlap
    return a_start < b_end and b_start < a_end


def within(start: int, end: int, window_start: int, window_end: int) -> bool:
    return start >= window_start and end <= window_end


def require_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are local clinic time; an offset cannot be compared with them."""
    if value is not None and value.utcoffset() is not None:
        raise InvalidInputError(
            f"Timestamp {value.isoformat()} carries a UTC offset, expected local clinic time"
        )
    return value


def coerce_date(value: Union[str, date_type]) -> date_type:
    """Accept a ``date`` or an ISO calendar date string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    try:
        return date_type.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise InvalidInputError(f"Malformed date {value!r}, expected YYYY-MM-DD") from exc
