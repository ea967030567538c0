"""Appointment schemas - Pydantic models for appointments API."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

AppointmentStatusValue = Literal["scheduled", "confirmed", "cancelled", "completed", "no_show"]


class AppointmentCreate(BaseModel):
    """Schema for creating an appointment from the dashboard."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    start_time: datetime
    end_time: datetime
    agenda_id: UUID | None = None
    client_id: UUID | None = None
    status: AppointmentStatusValue = "scheduled"
    appointment_type: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=500)
    internal_notes: str | None = Field(None, max_length=5000)
    metadata: dict[str, Any] | None = None


class AppointmentUpdate(BaseModel):
    """Partial update. Only fields present in the payload are applied."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    agenda_id: UUID | None = None
    client_id: UUID | None = None
    status: AppointmentStatusValue | None = None
    appointment_type: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=500)
    internal_notes: str | None = Field(None, max_length=5000)
    metadata: dict[str, Any] | None = None


class AppointmentClientRead(BaseModel):
    """Client summary embedded in appointment responses."""
    id: UUID
    name: str
    phone: str
    email: str | None

    model_config = {"from_attributes": True}


class AppointmentRead(BaseModel):
    """Schema for reading an appointment."""
    id: UUID
    organization_id: UUID | None
    user_id: UUID
    agenda_id: UUID | None
    client_id: UUID | None
    title: str
    description: str | None
    start_time: datetime
    end_time: datetime
    status: str
    appointment_type: str | None
    location: str | None
    internal_notes: str | None
    reminder_sent: bool
    reminder_sent_at: datetime | None
    metadata: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime
    client: AppointmentClientRead | None = None

    @classmethod
    def from_model(cls, appointment) -> "AppointmentRead":
        client = appointment.client
        return cls(
            id=appointment.id,
            organization_id=appointment.organization_id,
            user_id=appointment.user_id,
            agenda_id=appointment.agenda_id,
            client_id=appointment.client_id,
            title=appointment.title,
            description=appointment.description,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            status=appointment.status,
            appointment_type=appointment.appointment_type,
            location=appointment.location,
            internal_notes=appointment.internal_notes,
            reminder_sent=appointment.reminder_sent,
            reminder_sent_at=appointment.reminder_sent_at,
            metadata=appointment.metadata_,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
            client=AppointmentClientRead.model_validate(client) if client else None,
        )


class AppointmentListResponse(BaseModel):
    """Schema for appointment list response (ordered by start_time)."""
    items: list[AppointmentRead]
    total: int


class AppointmentMutationResponse(BaseModel):
    """Created/updated appointment plus the user-facing notification."""
    message: str
    appointment: AppointmentRead


class MessageResponse(BaseModel):
    message: str
