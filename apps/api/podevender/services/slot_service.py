"""Available slot calculation for an agenda on a given day.

Working hours and breaks are wall-clock times in the agenda's timezone.
Slots are generated from the start of the working day, stepping by the
agenda's slot_duration, and must end by the end of the working day. A slot
is dropped when it overlaps a non-cancelled appointment on the agenda or a
break that applies to that weekday. Returned instants are UTC.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from podevender.core.config import settings
from podevender.core.exceptions import NotFoundError, ValidationError
from podevender.db.enums import AppointmentStatus
from podevender.db.models import Agenda, Appointment
from podevender.services.interval import TimeInterval, overlaps

logger = logging.getLogger(__name__)

# Break "days" use 0=Sunday .. 6=Saturday
WEEKDAY_NAMES_FROM_SUNDAY = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)
DEFAULT_SLOT_DURATION = 30
MAX_SLOT_DURATION = 480


class TimeSlot(NamedTuple):
    """Available time slot."""
    start: datetime
    end: datetime


def resolve_timezone(name: str | None, strict: bool = False) -> ZoneInfo | None:
    """
    Get a ZoneInfo for name.

    Unknown names fall back to DEFAULT_TIMEZONE, or return None when strict.
    """
    candidate = name or settings.DEFAULT_TIMEZONE
    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError):
        if strict:
            return None
        logger.warning("unknown_timezone", extra={"timezone": candidate})
        return ZoneInfo(settings.DEFAULT_TIMEZONE)


def sunday_based_weekday(day: date) -> int:
    """Python Monday=0 -> 0=Sunday numbering."""
    return (day.weekday() + 1) % 7


def parse_day(value: str | None) -> date:
    if not value:
        raise ValidationError("Missing required parameters: agenda_id, date")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("Invalid date: expected YYYY-MM-DD")


def parse_duration(value: str | int | None) -> int:
    if value is None or value == "":
        return DEFAULT_SLOT_DURATION
    try:
        duration = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid duration")
    if duration <= 0 or duration > MAX_SLOT_DURATION:
        raise ValidationError(f"Duration must be between 1 and {MAX_SLOT_DURATION} minutes")
    return duration


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")[:2]
    return time(int(hours), int(minutes))


def _local_interval(day: date, start: str, end: str, tz: ZoneInfo) -> TimeInterval | None:
    """Wall-clock HH:MM range on day converted to UTC; None if empty or malformed."""
    try:
        local_start = datetime.combine(day, _parse_hhmm(start), tzinfo=tz)
        local_end = datetime.combine(day, _parse_hhmm(end), tzinfo=tz)
    except (TypeError, ValueError):
        return None
    if local_start >= local_end:
        return None
    return TimeInterval(local_start.astimezone(timezone.utc), local_end.astimezone(timezone.utc))


def _busy_intervals(db: Session, agenda_id: UUID, window: TimeInterval) -> list[TimeInterval]:
    appointments = db.query(Appointment).filter(
        Appointment.agenda_id == agenda_id,
        Appointment.status != AppointmentStatus.CANCELLED.value,
        Appointment.start_time < window.end,
        Appointment.end_time > window.start,
    ).all()
    return [TimeInterval(a.start_time, a.end_time) for a in appointments]


def _break_intervals(agenda: Agenda, day: date, tz: ZoneInfo) -> list[TimeInterval]:
    weekday = sunday_based_weekday(day)
    intervals = []
    for brk in agenda.breaks or []:
        if weekday not in (brk.get("days") or []):
            continue
        interval = _local_interval(day, brk.get("start"), brk.get("end"), tz)
        if interval:
            intervals.append(interval)
    return intervals


def get_active_agenda(db: Session, org_id: UUID, agenda_id: UUID) -> Agenda:
    agenda = db.query(Agenda).filter(
        Agenda.id == agenda_id,
        Agenda.organization_id == org_id,
        Agenda.is_active.is_(True),
    ).first()
    if not agenda:
        raise NotFoundError("Agenda not found")
    return agenda


def get_available_slots(
    db: Session,
    agenda: Agenda,
    day: date,
    duration_minutes: int = DEFAULT_SLOT_DURATION,
) -> list[TimeSlot]:
    """Calculate free slots of duration_minutes on day for the agenda."""
    tz = resolve_timezone(agenda.timezone)
    day_name = WEEKDAY_NAMES_FROM_SUNDAY[sunday_based_weekday(day)]
    hours = (agenda.working_hours or {}).get(day_name)
    if not hours or not hours.get("enabled"):
        return []

    working = _local_interval(day, hours.get("start"), hours.get("end"), tz)
    if working is None:
        return []

    busy = _busy_intervals(db, agenda.id, working)
    breaks = _break_intervals(agenda, day, tz)
    step = timedelta(minutes=agenda.slot_duration or DEFAULT_SLOT_DURATION)
    length = timedelta(minutes=duration_minutes)

    slots: list[TimeSlot] = []
    current = working.start
    while current + length <= working.end:
        candidate = TimeInterval(current, current + length)
        blocked = any(overlaps(candidate, other) for other in busy) or any(
            overlaps(candidate, other) for other in breaks
        )
        if not blocked:
            slots.append(TimeSlot(start=candidate.start, end=candidate.end))
        current += step

    return slots
