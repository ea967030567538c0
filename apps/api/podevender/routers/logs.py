"""Request logs router - the organization's public API audit trail."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from podevender.core.deps import get_db, require_roles
from podevender.db.enums import ROLES_CAN_MANAGE_TOKENS
from podevender.schemas.auth import UserSession
from podevender.schemas.request_log import ApiRequestLogListResponse, ApiRequestLogRead
from podevender.services import request_log_service
from podevender.utils.pagination import Window, get_window

router = APIRouter()


@router.get("", response_model=ApiRequestLogListResponse)
def list_request_logs(
    window: Window = Depends(get_window),
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_TOKENS)),
    db: Session = Depends(get_db),
):
    """List public API request logs, newest first."""
    rows, total = request_log_service.list_logs(db, session.org_id, window)
    return ApiRequestLogListResponse(
        items=[ApiRequestLogRead.model_validate(r) for r in rows],
        total=total,
        limit=window.limit,
        offset=window.offset,
        has_more=window.has_more(total),
    )
