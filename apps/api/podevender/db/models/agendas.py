"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from podevender.db.base import Base
from podevender.db.types import JSONType

if TYPE_CHECKING:
    from podevender.db.models import Organization, User


WEEKDAY_KEYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def default_working_hours() -> dict:
    """Mon-Fri 09:00-18:00, weekends off."""
    hours = {}
    for key in WEEKDAY_KEYS:
        hours[key] = {
            "start": "09:00",
            "end": "18:00",
            "enabled": key not in ("saturday", "sunday"),
        }
    return hours


class Agenda(Base):
    """
    A named scheduling calendar owned by one user.

    working_hours maps weekday names (monday..sunday) to
    {"start": "HH:MM", "end": "HH:MM", "enabled": bool}.
    breaks is a list of {"start": "HH:MM", "end": "HH:MM", "days": [int]}
    where days use 0=Sunday .. 6=Saturday.
    Time-of-day values are wall-clock in the agenda's timezone.
    """

    __tablename__ = "agendas"
    __table_args__ = (
        Index("idx_agendas_org", "organization_id", "is_active"),
        Index("idx_agendas_user", "user_id"),
        CheckConstraint("slot_duration > 0", name="ck_agendas_slot_duration_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Scheduling rules
    working_hours: Mapped[dict] = mapped_column(
        JSONType, default=default_working_hours, nullable=False
    )
    slot_duration: Mapped[int] = mapped_column(Integer, default=30, nullable=False)  # minutes
    breaks: Mapped[list | None] = mapped_column(JSONType, default=list, nullable=True)
    min_advance_hours: Mapped[int | None] = mapped_column(Integer, default=1, nullable=True)
    max_advance_days: Mapped[int | None] = mapped_column(Integer, default=30, nullable=True)
    buffer_time: Mapped[int | None] = mapped_column(Integer, default=0, nullable=True)  # minutes
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Notifications
    reminder_hours_before: Mapped[int | None] = mapped_column(Integer, default=24, nullable=True)
    send_confirmation: Mapped[bool | None] = mapped_column(Boolean, default=True, nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    organization: Mapped["Organization"] = relationship()
    user: Mapped["User"] = relationship()
