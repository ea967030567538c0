"""API tokens router - owners and admins manage public API credentials."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from podevender.core.deps import get_db, require_csrf_header, require_roles
from podevender.core.exceptions import SchedulingError
from podevender.db.enums import ROLES_CAN_MANAGE_TOKENS
from podevender.schemas.api_token import (
    ApiTokenCreate,
    ApiTokenCreated,
    ApiTokenRead,
    ApiTokenUpdate,
)
from podevender.schemas.appointment import MessageResponse
from podevender.schemas.auth import UserSession
from podevender.services import api_token_service, messages

router = APIRouter()

require_token_manager = require_roles(ROLES_CAN_MANAGE_TOKENS)


@router.get("", response_model=list[ApiTokenRead])
def list_tokens(
    session: UserSession = Depends(require_token_manager),
    db: Session = Depends(get_db),
):
    return api_token_service.list_tokens(db, session.org_id)


@router.post(
    "",
    response_model=ApiTokenCreated,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_token(
    data: ApiTokenCreate,
    session: UserSession = Depends(require_token_manager),
    db: Session = Depends(get_db),
):
    """Issue a token. The raw value is only included in this response."""
    token, raw_token = api_token_service.create_token(db, session.org_id, session.user_id, data)
    read = ApiTokenRead.model_validate(token)
    return ApiTokenCreated(**read.model_dump(), token=raw_token)


@router.patch(
    "/{token_id}",
    response_model=ApiTokenRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_token(
    token_id: UUID,
    data: ApiTokenUpdate,
    session: UserSession = Depends(require_token_manager),
    db: Session = Depends(get_db),
):
    try:
        return api_token_service.update_token(db, session.org_id, token_id, data)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{token_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_csrf_header)],
)
def delete_token(
    token_id: UUID,
    session: UserSession = Depends(require_token_manager),
    db: Session = Depends(get_db),
):
    try:
        api_token_service.delete_token(db, session.org_id, token_id)
    except SchedulingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return MessageResponse(message=messages.TOKEN_DELETED)
