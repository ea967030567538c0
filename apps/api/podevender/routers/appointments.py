"""Appointments router - dashboard endpoints for the staff calendar.

Every mutation answers with the pt-BR notification text, and conflict
failures come back as 409 with the same kind of message.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from podevender.core.deps import (
    get_current_session,
    get_db,
    get_listing_cache,
    require_csrf_header,
)
from podevender.core.exceptions import SchedulingError
from podevender.schemas.auth import UserSession
from podevender.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentMutationResponse,
    AppointmentRead,
    AppointmentUpdate,
    MessageResponse,
)
from podevender.services import appointment_service, messages
from podevender.services.appointment_service import AppointmentFilters
from podevender.services.listing_cache import ListingCache

router = APIRouter()


@router.get("", response_model=AppointmentListResponse)
def list_appointments(
    status: list[str] | None = Query(None, description="Repeat to match several statuses"),
    client_id: UUID | None = None,
    appointment_type: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    search: str | None = Query(None, max_length=200),
    agenda_id: UUID | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    """List the organization's agenda appointments ordered by start time."""
    filters = AppointmentFilters(
        status=frozenset(status or []),
        client_id=client_id,
        appointment_type=appointment_type,
        start_date=start_date,
        end_date=end_date,
        search=search.strip() if search and search.strip() else None,
        agenda_id=agenda_id,
    )

    def load() -> list[AppointmentRead]:
        rows = appointment_service.list_appointments(db, session.org_id, filters)
        return [AppointmentRead.from_model(a) for a in rows]

    items = cache.get_or_load(session.org_id, filters, load)
    return AppointmentListResponse(items=items, total=len(items))


@router.get("/{appointment_id}", response_model=AppointmentRead)
def get_appointment(
    appointment_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get appointment details."""
    appt = appointment_service.get_appointment(db, session.org_id, appointment_id)
    if not appt:
        raise HTTPException(status_code=404, detail=messages.APPOINTMENT_NOT_FOUND)
    return AppointmentRead.from_model(appt)


@router.post(
    "",
    response_model=AppointmentMutationResponse,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_appointment(
    data: AppointmentCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    """Create an appointment for the current user."""
    try:
        result = appointment_service.create_appointment(
            db, session.org_id, session.user_id, data, cache=cache
        )
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return AppointmentMutationResponse(
        message=result.message,
        appointment=AppointmentRead.from_model(result.appointment),
    )


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentMutationResponse,
    dependencies=[Depends(require_csrf_header)],
)
def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    """Update an appointment. Time changes are re-checked for conflicts."""
    try:
        result = appointment_service.update_appointment(
            db, session.org_id, appointment_id, data, cache=cache
        )
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return AppointmentMutationResponse(
        message=result.message,
        appointment=AppointmentRead.from_model(result.appointment),
    )


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentMutationResponse,
    dependencies=[Depends(require_csrf_header)],
)
def cancel_appointment(
    appointment_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    """Cancel an appointment (its slot becomes free)."""
    try:
        result = appointment_service.cancel_appointment(
            db, session.org_id, appointment_id, cache=cache
        )
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return AppointmentMutationResponse(
        message=result.message,
        appointment=AppointmentRead.from_model(result.appointment),
    )


@router.post(
    "/{appointment_id}/reminder-sent",
    response_model=AppointmentRead,
    dependencies=[Depends(require_csrf_header)],
)
def mark_reminder_sent(
    appointment_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    try:
        appt = appointment_service.mark_reminder_sent(
            db, session.org_id, appointment_id, cache=cache
        )
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return AppointmentRead.from_model(appt)


@router.delete(
    "/{appointment_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_csrf_header)],
)
def delete_appointment(
    appointment_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    """Permanently delete an appointment."""
    try:
        message = appointment_service.delete_appointment(
            db, session.org_id, appointment_id, cache=cache
        )
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return MessageResponse(message=message)
