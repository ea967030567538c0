"""Agendas router - scheduling calendars of the organization."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from podevender.core.deps import get_current_session, get_db, get_listing_cache, require_csrf_header
from podevender.core.exceptions import SchedulingError
from podevender.db.models import Agenda
from podevender.schemas.agenda import AgendaCreate, AgendaRead, AgendaUpdate
from podevender.schemas.auth import UserSession
from podevender.services import agenda_service
from podevender.services.listing_cache import ListingCache

router = APIRouter()


def _agenda_to_read(agenda: Agenda) -> AgendaRead:
    """Convert Agenda model to read schema."""
    return AgendaRead(
        id=agenda.id,
        organization_id=agenda.organization_id,
        user_id=agenda.user_id,
        name=agenda.name,
        description=agenda.description,
        color=agenda.color,
        working_hours=agenda.working_hours or {},
        slot_duration=agenda.slot_duration,
        breaks=agenda.breaks or [],
        min_advance_hours=agenda.min_advance_hours,
        max_advance_days=agenda.max_advance_days,
        buffer_time=agenda.buffer_time,
        reminder_hours_before=agenda.reminder_hours_before,
        send_confirmation=agenda.send_confirmation,
        timezone=agenda.timezone,
        is_active=agenda.is_active,
        metadata=agenda.metadata_,
        created_at=agenda.created_at,
        updated_at=agenda.updated_at,
    )


@router.get("", response_model=list[AgendaRead])
def list_agendas(
    include_inactive: bool = False,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List agendas ordered by name."""
    agendas = agenda_service.list_agendas(db, session.org_id, include_inactive=include_inactive)
    return [_agenda_to_read(a) for a in agendas]


@router.get("/{agenda_id}", response_model=AgendaRead)
def get_agenda(
    agenda_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        agenda = agenda_service.get_agenda(db, session.org_id, agenda_id)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _agenda_to_read(agenda)


@router.post(
    "",
    response_model=AgendaRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_agenda(
    data: AgendaCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        agenda = agenda_service.create_agenda(db, session.org_id, session.user_id, data)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _agenda_to_read(agenda)


@router.patch(
    "/{agenda_id}",
    response_model=AgendaRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_agenda(
    agenda_id: UUID,
    data: AgendaUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    try:
        agenda = agenda_service.update_agenda(db, session.org_id, agenda_id, data, cache=cache)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _agenda_to_read(agenda)


@router.delete(
    "/{agenda_id}",
    response_model=AgendaRead,
    dependencies=[Depends(require_csrf_header)],
)
def deactivate_agenda(
    agenda_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    """Deactivate (soft delete) an agenda."""
    try:
        agenda = agenda_service.deactivate_agenda(db, session.org_id, agenda_id, cache=cache)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _agenda_to_read(agenda)
