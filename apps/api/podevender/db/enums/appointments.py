"""Appointment and scheduling enums."""

from enum import Enum


class AppointmentStatus(str, Enum):
    """
    Appointment lifecycle status.

    Flow: scheduled → confirmed → completed
              ↘ cancelled
              ↘ no_show

    Cancelled appointments never take part in conflict checks.
    """

    SCHEDULED = "scheduled"  # Booked, not yet confirmed
    CONFIRMED = "confirmed"  # Confirmed with the client
    CANCELLED = "cancelled"  # Cancelled by client or staff
    COMPLETED = "completed"  # Meeting took place
    NO_SHOW = "no_show"  # Client didn't show up

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


# Default appointment status
DEFAULT_APPOINTMENT_STATUS = AppointmentStatus.SCHEDULED
