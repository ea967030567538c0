"""Time interval model used by conflict checking and slot calculation.

Intervals are half-open [start, end) over UTC instants, so two appointments
that touch (one ends exactly when the next starts) do not overlap.
"""

from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from podevender.core.exceptions import ValidationError


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to an aware UTC instant (naive means UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_instant(value: str | datetime, field: str = "time") -> datetime:
    """Parse an ISO-8601 string (or pass through a datetime) into UTC."""
    if isinstance(value, datetime):
        return to_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {field}")
    raw = value.strip()
    # fromisoformat on older interpreters does not accept a trailing Z
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        return to_utc(datetime.fromisoformat(raw))
    except ValueError:
        raise ValidationError(f"Invalid {field}: expected ISO-8601")


class TimeInterval(NamedTuple):
    """Half-open interval [start, end) in UTC."""
    start: datetime
    end: datetime

    @classmethod
    def of(cls, start: datetime, end: datetime) -> "TimeInterval":
        """Build a validated interval; rejects empty or inverted ranges."""
        start = to_utc(start)
        end = to_utc(end)
        if start >= end:
            raise ValidationError("start_time must be before end_time")
        return cls(start, end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, instant: datetime) -> bool:
        instant = to_utc(instant)
        return self.start <= instant < self.end

    def shift(self, delta: timedelta) -> "TimeInterval":
        return TimeInterval(self.start + delta, self.end + delta)

    def overlaps(self, other: "TimeInterval") -> bool:
        return overlaps(self, other)


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """True iff the intervals share at least one instant."""
    return a.start < b.end and b.start < a.end
