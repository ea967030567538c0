"""Agenda service - CRUD for scheduling calendars."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from podevender.core.exceptions import NotFoundError, ValidationError
from podevender.core.structured_logging import build_log_context
from podevender.db.models import Agenda, Membership
from podevender.db.models.agendas import default_working_hours
from podevender.schemas.agenda import AgendaCreate, AgendaUpdate
from podevender.services import messages
from podevender.services.listing_cache import ListingCache
from podevender.services.slot_service import resolve_timezone

logger = logging.getLogger(__name__)


def _dump_working_hours(value) -> dict:
    hours = default_working_hours()
    for day, config in (value or {}).items():
        hours[day] = config.model_dump()
    return hours


def _check_timezone(name: str | None) -> None:
    if name and resolve_timezone(name, strict=True) is None:
        raise ValidationError(f"Fuso horário inválido: {name}")


def list_agendas(db: Session, org_id: UUID, include_inactive: bool = False) -> list[Agenda]:
    """List agendas ordered by name (active only by default)."""
    query = db.query(Agenda).filter(Agenda.organization_id == org_id)
    if not include_inactive:
        query = query.filter(Agenda.is_active.is_(True))
    return query.order_by(Agenda.name.asc()).all()


def get_agenda(db: Session, org_id: UUID, agenda_id: UUID) -> Agenda:
    agenda = db.query(Agenda).filter(
        Agenda.id == agenda_id,
        Agenda.organization_id == org_id,
    ).first()
    if not agenda:
        raise NotFoundError(messages.AGENDA_NOT_FOUND)
    return agenda


def create_agenda(db: Session, org_id: UUID, user_id: UUID, data: AgendaCreate) -> Agenda:
    """Create an agenda. The owner defaults to the caller and must be a member."""
    owner_id = data.user_id or user_id
    if owner_id != user_id:
        member = db.query(Membership).filter(
            Membership.user_id == owner_id,
            Membership.organization_id == org_id,
        ).first()
        if not member:
            raise ValidationError("O responsável precisa ser membro da organização")
    _check_timezone(data.timezone)

    agenda = Agenda(
        organization_id=org_id,
        user_id=owner_id,
        name=data.name,
        description=data.description,
        color=data.color,
        working_hours=_dump_working_hours(data.working_hours),
        slot_duration=data.slot_duration,
        breaks=[b.model_dump() for b in data.breaks],
        min_advance_hours=data.min_advance_hours,
        max_advance_days=data.max_advance_days,
        buffer_time=data.buffer_time,
        reminder_hours_before=data.reminder_hours_before,
        send_confirmation=data.send_confirmation,
        timezone=data.timezone,
        metadata_=data.metadata,
    )
    db.add(agenda)
    db.commit()
    db.refresh(agenda)
    logger.info("agenda_created", extra=build_log_context(org_id=org_id, agenda_id=str(agenda.id)))
    return agenda


def update_agenda(
    db: Session,
    org_id: UUID,
    agenda_id: UUID,
    data: AgendaUpdate,
    cache: ListingCache | None = None,
) -> Agenda:
    agenda = get_agenda(db, org_id, agenda_id)
    changes = data.model_dump(exclude_unset=True)

    if "timezone" in changes:
        _check_timezone(changes["timezone"])
    if "working_hours" in changes and changes["working_hours"] is not None:
        merged = dict(agenda.working_hours or default_working_hours())
        merged.update(changes.pop("working_hours"))
        agenda.working_hours = merged
    else:
        changes.pop("working_hours", None)
    if "breaks" in changes:
        agenda.breaks = changes.pop("breaks") or []
    if "metadata" in changes:
        agenda.metadata_ = changes.pop("metadata")

    for key, value in changes.items():
        if value is None and key in ("name", "slot_duration", "is_active"):
            continue
        setattr(agenda, key, value)

    db.commit()
    db.refresh(agenda)
    if cache is not None:
        cache.invalidate(org_id)
    return agenda


def deactivate_agenda(
    db: Session,
    org_id: UUID,
    agenda_id: UUID,
    cache: ListingCache | None = None,
) -> Agenda:
    """Soft delete: the agenda stops accepting bookings but keeps its history."""
    agenda = get_agenda(db, org_id, agenda_id)
    agenda.is_active = False
    db.commit()
    db.refresh(agenda)
    if cache is not None:
        cache.invalidate(org_id)
    logger.info("agenda_deactivated", extra=build_log_context(org_id=org_id, agenda_id=str(agenda.id)))
    return agenda
