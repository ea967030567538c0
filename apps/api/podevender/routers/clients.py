"""Clients router."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from podevender.core.deps import get_current_session, get_db, get_listing_cache, require_csrf_header
from podevender.core.exceptions import SchedulingError
from podevender.schemas.appointment import MessageResponse
from podevender.schemas.auth import UserSession
from podevender.schemas.client import ClientCreate, ClientRead, ClientUpdate
from podevender.services import client_service, messages
from podevender.services.listing_cache import ListingCache

router = APIRouter()


@router.get("", response_model=list[ClientRead])
def list_clients(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return client_service.list_clients(db, session.org_id)


@router.get("/by-phone", response_model=ClientRead)
def find_client_by_phone(
    phone: str = Query(..., min_length=1, max_length=50),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    client = client_service.find_by_phone(db, session.org_id, phone)
    if not client:
        raise HTTPException(status_code=404, detail=messages.CLIENT_NOT_FOUND)
    return client


@router.get("/{client_id}", response_model=ClientRead)
def get_client(
    client_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        return client_service.get_client(db, session.org_id, client_id)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ClientRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_client(
    data: ClientCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        return client_service.create_client(db, session.org_id, data, user_id=session.user_id)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{client_id}",
    response_model=ClientRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_client(
    client_id: UUID,
    data: ClientUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    try:
        return client_service.update_client(db, session.org_id, client_id, data, cache=cache)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{client_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_csrf_header)],
)
def delete_client(
    client_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    cache: ListingCache = Depends(get_listing_cache),
):
    try:
        client_service.delete_client(db, session.org_id, client_id, cache=cache)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return MessageResponse(message=messages.CLIENT_DELETED)
