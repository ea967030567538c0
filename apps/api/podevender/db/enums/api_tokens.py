"""Public API token scopes."""

from enum import Enum


class ApiScope(str, Enum):
    """Capabilities that can be granted to a public API token."""

    READ_APPOINTMENTS = "read:appointments"
    WRITE_APPOINTMENTS = "write:appointments"
    READ_CLIENTS = "read:clients"
    WRITE_CLIENTS = "write:clients"
    READ_PRODUCTS = "read:products"
    WRITE_PRODUCTS = "write:products"
    READ_AGENDAS = "read:agendas"
    ADMIN_ALL = "admin:all"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


WRITE_APPOINTMENT_SCOPES = {ApiScope.WRITE_APPOINTMENTS.value, ApiScope.ADMIN_ALL.value}
READ_APPOINTMENT_SCOPES = {ApiScope.READ_APPOINTMENTS.value, ApiScope.ADMIN_ALL.value}
