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
    String,
    Text,
    Uuid,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from podevender.db.base import Base
from podevender.db.enums import AppointmentStatus
from podevender.db.types import JSONType

if TYPE_CHECKING:
    from podevender.db.models import Agenda, Client


class Appointment(Base):
    """
    A booked time slot.

    The interval is half-open [start_time, end_time). Non-cancelled
    appointments of the same owner (staff path) or agenda (public path)
    never overlap; PostgreSQL also enforces the agenda rule with an
    exclusion constraint created by the migrations.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_user_status", "user_id", "status"),
        Index("idx_appointments_agenda_start", "agenda_id", "start_time"),
        Index("idx_appointments_org_start", "organization_id", "start_time"),
        CheckConstraint("start_time < end_time", name="ck_appointments_valid_interval"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    agenda_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("agendas.id", ondelete="SET NULL"), nullable=True
    )
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=AppointmentStatus.SCHEDULED.value, nullable=False
    )
    appointment_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Reminder tracking
    reminder_sent: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    reminder_sent_at: Mapped[datetime | None] = mapped_column(nullable=True)

    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    agenda: Mapped["Agenda | None"] = relationship()
    client: Mapped["Client | None"] = relationship()
