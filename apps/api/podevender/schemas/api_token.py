"""Public API token schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from podevender.db.enums import ApiScope


class ApiTokenCreate(BaseModel):
    """Schema for issuing a new API token."""
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    scopes: list[ApiScope] = Field(..., min_length=1)
    allowed_ips: list[str] | None = None
    rate_limit_per_minute: int | None = Field(60, ge=1, le=10000)
    expires_at: datetime | None = None


class ApiTokenUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    scopes: list[ApiScope] | None = Field(None, min_length=1)
    allowed_ips: list[str] | None = None
    is_active: bool | None = None


class ApiTokenRead(BaseModel):
    """Token metadata. The raw token is never returned after creation."""
    id: UUID
    organization_id: UUID
    name: str
    description: str | None
    token_prefix: str
    scopes: list[str]
    allowed_ips: list[str] | None
    rate_limit_per_minute: int | None
    is_active: bool
    expires_at: datetime | None
    last_used_at: datetime | None
    created_by: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ApiTokenCreated(ApiTokenRead):
    """Returned once, right after creation."""
    token: str
