"""Agenda schemas - Pydantic models for agendas API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
WEEKDAY_KEYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class WorkingDay(BaseModel):
    """Working hours of one weekday, wall-clock in the agenda timezone."""
    start: str = Field(..., pattern=HHMM_PATTERN, description="HH:MM format")
    end: str = Field(..., pattern=HHMM_PATTERN, description="HH:MM format")
    enabled: bool = True

    @model_validator(mode="after")
    def check_order(self):
        if self.enabled and self.start >= self.end:
            raise ValueError("start must be before end")
        return self


class AgendaBreak(BaseModel):
    """Recurring break. days uses 0=Sunday .. 6=Saturday."""
    start: str = Field(..., pattern=HHMM_PATTERN)
    end: str = Field(..., pattern=HHMM_PATTERN)
    days: list[int] = Field(default_factory=list)

    @field_validator("days")
    @classmethod
    def check_days(cls, value: list[int]) -> list[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("days must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(value))

    @model_validator(mode="after")
    def check_order(self):
        if self.start >= self.end:
            raise ValueError("start must be before end")
        return self


def _check_weekdays(value: dict[str, WorkingDay] | None) -> dict[str, WorkingDay] | None:
    if value is None:
        return value
    unknown = set(value) - set(WEEKDAY_KEYS)
    if unknown:
        raise ValueError(f"Unknown weekday keys: {', '.join(sorted(unknown))}")
    return value


class AgendaCreate(BaseModel):
    """Schema for creating an agenda."""
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    color: str | None = Field(None, max_length=20)
    user_id: UUID | None = None  # Owner; defaults to the caller
    working_hours: dict[str, WorkingDay] | None = None
    slot_duration: int = Field(30, ge=5, le=480)
    breaks: list[AgendaBreak] = Field(default_factory=list)
    min_advance_hours: int | None = Field(1, ge=0)
    max_advance_days: int | None = Field(30, ge=0)
    buffer_time: int | None = Field(0, ge=0, le=240)
    reminder_hours_before: int | None = Field(24, ge=0, le=168)
    send_confirmation: bool | None = True
    timezone: str | None = Field(None, max_length=64)
    metadata: dict[str, Any] | None = None

    @field_validator("working_hours")
    @classmethod
    def check_weekdays(cls, value):
        return _check_weekdays(value)


class AgendaUpdate(BaseModel):
    """Schema for updating an agenda."""
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    color: str | None = Field(None, max_length=20)
    working_hours: dict[str, WorkingDay] | None = None
    slot_duration: int | None = Field(None, ge=5, le=480)
    breaks: list[AgendaBreak] | None = None
    min_advance_hours: int | None = Field(None, ge=0)
    max_advance_days: int | None = Field(None, ge=0)
    buffer_time: int | None = Field(None, ge=0, le=240)
    reminder_hours_before: int | None = Field(None, ge=0, le=168)
    send_confirmation: bool | None = None
    timezone: str | None = Field(None, max_length=64)
    is_active: bool | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("working_hours")
    @classmethod
    def check_weekdays(cls, value):
        return _check_weekdays(value)


class AgendaRead(BaseModel):
    """Schema for reading an agenda."""
    id: UUID
    organization_id: UUID
    user_id: UUID
    name: str
    description: str | None
    color: str | None
    working_hours: dict[str, Any]
    slot_duration: int
    breaks: list[dict[str, Any]]
    min_advance_hours: int | None
    max_advance_days: int | None
    buffer_time: int | None
    reminder_hours_before: int | None
    send_confirmation: bool | None
    timezone: str | None
    is_active: bool
    metadata: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime
