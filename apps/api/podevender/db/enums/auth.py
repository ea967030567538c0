"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Organization member roles.

    - OWNER: Account owner (billing, tokens, everything an admin can do)
    - ADMIN: Manages team, agendas and API tokens
    - SELLER: Works the inbox, clients and appointments
    """

    OWNER = "owner"
    ADMIN = "admin"
    SELLER = "seller"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


ROLES_CAN_MANAGE_TOKENS = {Role.OWNER, Role.ADMIN}
