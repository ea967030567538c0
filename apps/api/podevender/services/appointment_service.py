"""Appointment service - business logic for the staff dashboard.

Handles:
- Create/update with conflict checking against the owner's schedule
- Hard delete, cancel and reminder bookkeeping
- Filtered listings (explicit AppointmentFilters)
- Listing cache invalidation after every successful mutation

Conflict checks run in the same transaction as the write, after locking
the scope owner's row, so two concurrent writers cannot both pass.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import NamedTuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from podevender.core.exceptions import ConflictError, NotFoundError, ValidationError
from podevender.core.structured_logging import build_log_context
from podevender.db.enums import AppointmentStatus
from podevender.db.models import Agenda, Appointment, Client
from podevender.schemas.appointment import AppointmentCreate, AppointmentUpdate
from podevender.services import messages
from podevender.services.conflict_service import ConflictScope, find_conflict, lock_scope
from podevender.services.interval import TimeInterval
from podevender.services.listing_cache import ListingCache

logger = logging.getLogger(__name__)

# Columns that cannot be cleared through a partial update
NON_NULLABLE_FIELDS = {"title", "start_time", "end_time", "status"}


# =============================================================================
# Types
# =============================================================================

@dataclass(frozen=True)
class AppointmentFilters:
    """
    Supported listing filters.

    status matches any of the given values; start_date/end_date bound
    start_time inclusively; search is a case-insensitive substring match
    on title or description. Frozen so it can key the listing cache.
    """
    status: frozenset[str] = frozenset()
    client_id: UUID | None = None
    appointment_type: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = None
    agenda_id: UUID | None = None


class MutationResult(NamedTuple):
    """Mutated appointment plus the notification shown to the user."""
    appointment: Appointment
    message: str


# =============================================================================
# Helpers
# =============================================================================

def _interval(start: datetime, end: datetime) -> TimeInterval:
    try:
        return TimeInterval.of(start, end)
    except ValidationError:
        raise ValidationError(messages.INVALID_INTERVAL)


def _ensure_agenda(db: Session, org_id: UUID, agenda_id: UUID) -> Agenda:
    agenda = db.query(Agenda).filter(
        Agenda.id == agenda_id,
        Agenda.organization_id == org_id,
    ).first()
    if not agenda:
        raise NotFoundError(messages.AGENDA_NOT_FOUND)
    return agenda


def _ensure_client(db: Session, org_id: UUID, client_id: UUID) -> Client:
    client = db.query(Client).filter(
        Client.id == client_id,
        Client.organization_id == org_id,
    ).first()
    if not client:
        raise NotFoundError(messages.CLIENT_NOT_FOUND)
    return client


def _check_conflicts(
    db: Session,
    candidate: TimeInterval,
    org_id: UUID,
    user_id: UUID,
    agenda_id: UUID | None,
    exclude_appointment_id: UUID | None = None,
) -> None:
    """Lock and check the owner's schedule, and the agenda's when set."""
    scopes = [ConflictScope.for_user(org_id, user_id)]
    if agenda_id is not None:
        scopes.append(ConflictScope.for_agenda(org_id, agenda_id))

    for scope in scopes:
        lock_scope(db, scope)
    for scope in scopes:
        if find_conflict(db, candidate, scope, exclude_appointment_id) is not None:
            raise ConflictError(messages.APPOINTMENT_CONFLICT)


def _commit(db: Session) -> None:
    """Commit, mapping constraint violations (exclusion/check) to conflicts."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(messages.APPOINTMENT_CONFLICT)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# =============================================================================
# Queries
# =============================================================================

def get_appointment(
    db: Session,
    org_id: UUID,
    appointment_id: UUID,
) -> Appointment | None:
    """Get appointment by ID within the organization."""
    return db.query(Appointment).options(joinedload(Appointment.client)).filter(
        Appointment.id == appointment_id,
        Appointment.organization_id == org_id,
    ).first()


def get_appointment_or_404(db: Session, org_id: UUID, appointment_id: UUID) -> Appointment:
    appointment = get_appointment(db, org_id, appointment_id)
    if not appointment:
        raise NotFoundError(messages.APPOINTMENT_NOT_FOUND)
    return appointment


def list_appointments(
    db: Session,
    org_id: UUID,
    filters: AppointmentFilters | None = None,
) -> list[Appointment]:
    """
    List appointments ordered by start_time ascending.

    Only appointments attached to an agenda are listed.
    """
    filters = filters or AppointmentFilters()
    query = db.query(Appointment).options(joinedload(Appointment.client)).filter(
        Appointment.organization_id == org_id,
        Appointment.agenda_id.isnot(None),
    )

    if filters.status:
        query = query.filter(Appointment.status.in_(sorted(filters.status)))
    if filters.client_id:
        query = query.filter(Appointment.client_id == filters.client_id)
    if filters.appointment_type:
        query = query.filter(Appointment.appointment_type == filters.appointment_type)
    if filters.start_date:
        query = query.filter(Appointment.start_time >= filters.start_date)
    if filters.end_date:
        query = query.filter(Appointment.start_time <= filters.end_date)
    if filters.search:
        pattern = f"%{_escape_like(filters.search)}%"
        query = query.filter(
            or_(
                Appointment.title.ilike(pattern, escape="\\"),
                Appointment.description.ilike(pattern, escape="\\"),
            )
        )
    if filters.agenda_id:
        query = query.filter(Appointment.agenda_id == filters.agenda_id)

    return query.order_by(Appointment.start_time.asc(), Appointment.id.asc()).all()


# =============================================================================
# Mutations
# =============================================================================

def create_appointment(
    db: Session,
    org_id: UUID,
    user_id: UUID,
    data: AppointmentCreate,
    cache: ListingCache | None = None,
) -> MutationResult:
    """Create an appointment owned by user_id after checking for conflicts."""
    candidate = _interval(data.start_time, data.end_time)
    if data.agenda_id:
        _ensure_agenda(db, org_id, data.agenda_id)
    if data.client_id:
        _ensure_client(db, org_id, data.client_id)

    _check_conflicts(db, candidate, org_id, user_id, data.agenda_id)

    appointment = Appointment(
        organization_id=org_id,
        user_id=user_id,
        agenda_id=data.agenda_id,
        client_id=data.client_id,
        title=data.title,
        description=data.description,
        start_time=candidate.start,
        end_time=candidate.end,
        status=data.status,
        appointment_type=data.appointment_type,
        location=data.location,
        internal_notes=data.internal_notes,
        metadata_=data.metadata,
    )
    db.add(appointment)
    _commit(db)
    db.refresh(appointment)

    if cache is not None:
        cache.invalidate(org_id)
    logger.info(
        "appointment_created",
        extra=build_log_context(user_id=user_id, org_id=org_id, appointment_id=str(appointment.id)),
    )
    return MutationResult(appointment, messages.APPOINTMENT_CREATED)


def update_appointment(
    db: Session,
    org_id: UUID,
    appointment_id: UUID,
    data: AppointmentUpdate,
    cache: ListingCache | None = None,
) -> MutationResult:
    """
    Apply a partial update.

    When start_time or end_time is present the effective interval (missing
    bound taken from the stored row) is re-checked against the owner's
    other appointments. Moving a cancelled appointment back to an active
    status is re-checked as well. Other edits skip the conflict check.
    """
    appointment = get_appointment_or_404(db, org_id, appointment_id)
    changes = data.model_dump(exclude_unset=True)
    for key in NON_NULLABLE_FIELDS:
        if key in changes and changes[key] is None:
            del changes[key]

    touches_time = "start_time" in changes or "end_time" in changes
    new_status = changes.get("status", appointment.status)
    reactivates = (
        appointment.status == AppointmentStatus.CANCELLED.value
        and new_status != AppointmentStatus.CANCELLED.value
    )

    if changes.get("agenda_id"):
        _ensure_agenda(db, org_id, changes["agenda_id"])
    if changes.get("client_id"):
        _ensure_client(db, org_id, changes["client_id"])

    candidate = _interval(
        changes.get("start_time", appointment.start_time),
        changes.get("end_time", appointment.end_time),
    )
    if touches_time or reactivates:
        _check_conflicts(
            db,
            candidate,
            org_id,
            appointment.user_id,
            changes.get("agenda_id", appointment.agenda_id),
            exclude_appointment_id=appointment.id,
        )

    for key, value in changes.items():
        if key == "metadata":
            appointment.metadata_ = value
        elif key == "start_time":
            appointment.start_time = candidate.start
        elif key == "end_time":
            appointment.end_time = candidate.end
        else:
            setattr(appointment, key, value)

    _commit(db)
    db.refresh(appointment)

    if cache is not None:
        cache.invalidate(org_id)
    logger.info(
        "appointment_updated",
        extra=build_log_context(
            org_id=org_id,
            appointment_id=str(appointment.id),
            rechecked=touches_time or reactivates,
        ),
    )
    return MutationResult(appointment, messages.APPOINTMENT_UPDATED)


def cancel_appointment(
    db: Session,
    org_id: UUID,
    appointment_id: UUID,
    cache: ListingCache | None = None,
) -> MutationResult:
    """Move an appointment to the cancelled state, freeing its slot."""
    appointment = get_appointment_or_404(db, org_id, appointment_id)
    appointment.status = AppointmentStatus.CANCELLED.value
    db.commit()
    db.refresh(appointment)

    if cache is not None:
        cache.invalidate(org_id)
    return MutationResult(appointment, messages.APPOINTMENT_CANCELLED)


def delete_appointment(
    db: Session,
    org_id: UUID,
    appointment_id: UUID,
    cache: ListingCache | None = None,
) -> str:
    """Hard delete. No conflict check is needed."""
    appointment = get_appointment_or_404(db, org_id, appointment_id)
    db.delete(appointment)
    db.commit()

    if cache is not None:
        cache.invalidate(org_id)
    logger.info(
        "appointment_deleted",
        extra=build_log_context(org_id=org_id, appointment_id=str(appointment_id)),
    )
    return messages.APPOINTMENT_DELETED


def mark_reminder_sent(
    db: Session,
    org_id: UUID,
    appointment_id: UUID,
    cache: ListingCache | None = None,
) -> Appointment:
    appointment = get_appointment_or_404(db, org_id, appointment_id)
    appointment.reminder_sent = True
    appointment.reminder_sent_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(appointment)

    if cache is not None:
        cache.invalidate(org_id)
    return appointment
