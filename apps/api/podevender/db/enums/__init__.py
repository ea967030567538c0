"""Enum definitions for application constants."""

from podevender.db.enums.api_tokens import ApiScope, WRITE_APPOINTMENT_SCOPES, READ_APPOINTMENT_SCOPES
from podevender.db.enums.appointments import (
    AppointmentStatus,
    DEFAULT_APPOINTMENT_STATUS,
)
from podevender.db.enums.auth import Role, ROLES_CAN_MANAGE_TOKENS

__all__ = [
    "ApiScope",
    "AppointmentStatus",
    "DEFAULT_APPOINTMENT_STATUS",
    "READ_APPOINTMENT_SCOPES",
    "ROLES_CAN_MANAGE_TOKENS",
    "Role",
    "WRITE_APPOINTMENT_SCOPES",
]
