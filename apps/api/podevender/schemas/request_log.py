"""API request log schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class ApiRequestLogRead(BaseModel):
    id: UUID
    token_id: UUID | None
    organization_id: UUID | None
    endpoint: str
    method: str
    status_code: int | None
    ip_address: str | None
    user_agent: str | None
    request_body: dict[str, Any] | None
    response_body: dict[str, Any] | None
    error_message: str | None
    duration_ms: int | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ApiRequestLogListResponse(BaseModel):
    items: list[ApiRequestLogRead]
    total: int
    limit: int
    offset: int
    has_more: bool
