"""Conflict checking for appointments.

A candidate interval conflicts when it overlaps any non-cancelled
appointment in the same scope. The staff path scopes by owning user, the
public booking path by agenda; both are bounded by organization.

Every non-cancelled appointment in scope is loaded and compared in Python
with the half-open overlap test. Database errors propagate to the caller:
a failed lookup is never reported as "no conflict".
"""

from typing import NamedTuple
from uuid import UUID

from sqlalchemy.orm import Session

from podevender.db.enums import AppointmentStatus
from podevender.db.models import Agenda, Appointment, User
from podevender.services.interval import TimeInterval, overlaps


class ConflictScope(NamedTuple):
    """Which appointments a candidate is compared against."""
    org_id: UUID | None
    user_id: UUID | None = None
    agenda_id: UUID | None = None

    @classmethod
    def for_user(cls, org_id: UUID | None, user_id: UUID) -> "ConflictScope":
        return cls(org_id=org_id, user_id=user_id)

    @classmethod
    def for_agenda(cls, org_id: UUID, agenda_id: UUID) -> "ConflictScope":
        return cls(org_id=org_id, agenda_id=agenda_id)


def _scope_query(db: Session, scope: ConflictScope):
    if scope.agenda_id is None and scope.user_id is None:
        raise ValueError("Conflict scope needs a user or an agenda")

    query = db.query(Appointment).filter(
        Appointment.status != AppointmentStatus.CANCELLED.value,
    )
    if scope.agenda_id is not None:
        query = query.filter(Appointment.agenda_id == scope.agenda_id)
    else:
        query = query.filter(Appointment.user_id == scope.user_id)
    if scope.org_id is not None:
        query = query.filter(Appointment.organization_id == scope.org_id)
    return query


def find_conflict(
    db: Session,
    candidate: TimeInterval,
    scope: ConflictScope,
    exclude_appointment_id: UUID | None = None,
) -> Appointment | None:
    """Return the first appointment overlapping the candidate, if any."""
    for appointment in _scope_query(db, scope).all():
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        existing = TimeInterval(appointment.start_time, appointment.end_time)
        if overlaps(candidate, existing):
            return appointment
    return None


def lock_scope(db: Session, scope: ConflictScope) -> None:
    """
    Take a row lock on the scope owner for the rest of the transaction.

    Concurrent bookings for the same agenda (or owner) serialize on this
    lock, so the conflict check and the insert that follows see each
    other's writes. SQLite ignores FOR UPDATE; its writer lock serializes
    transactions instead.
    """
    if scope.agenda_id is not None:
        db.query(Agenda.id).filter(Agenda.id == scope.agenda_id).with_for_update().first()
    elif scope.user_id is not None:
        db.query(User.id).filter(User.id == scope.user_id).with_for_update().first()
