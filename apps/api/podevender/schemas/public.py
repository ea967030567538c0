"""Schemas for the token-authenticated public API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from podevender.schemas.appointment import AppointmentRead


class PublicBookingRequest(BaseModel):
    """
    Body of POST /public-api/appointments.

    Types and lengths are checked here; presence and ISO-8601 format are
    checked by the booking service. Both map to 400 with an error body.
    """
    agenda_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    client_name: str | None = Field(None, max_length=255)
    client_phone: str | None = Field(None, max_length=50)
    client_email: str | None = Field(None, max_length=255)
    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=5000)


class PublicBookingResponse(BaseModel):
    appointment: AppointmentRead


class TimeSlotRead(BaseModel):
    """Schema for an available time slot."""
    start: datetime
    end: datetime


class AvailableSlotsResponse(BaseModel):
    agenda_id: UUID
    date: str
    duration: int
    slots: list[TimeSlotRead]


class TokenValidationResponse(BaseModel):
    valid: bool = True
    organization_id: UUID
    scopes: list[str]
    token_id: UUID


class ErrorResponse(BaseModel):
    error: str
