"""Client schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=5, max_length=50)
    email: EmailStr | None = None
    cpf: str | None = Field(None, max_length=20)
    city: str | None = Field(None, max_length=120)
    notes: str | None = Field(None, max_length=5000)


class ClientUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, min_length=5, max_length=50)
    email: EmailStr | None = None
    cpf: str | None = Field(None, max_length=20)
    city: str | None = Field(None, max_length=120)
    notes: str | None = Field(None, max_length=5000)


class ClientRead(BaseModel):
    id: UUID
    organization_id: UUID
    user_id: UUID | None
    name: str
    phone: str
    email: str | None
    cpf: str | None
    city: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
