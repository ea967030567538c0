"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from podevender.db.enums import Role


class UserSession(BaseModel):
    """
    Full session context for authenticated staff requests.

    This is returned by get_current_session dependency
    and contains all information needed for authorization.
    """
    user_id: UUID
    org_id: UUID
    role: Role  # Validated enum
    email: str
    display_name: str


class TokenContext(BaseModel):
    """Result of validating a public API bearer token."""
    token_id: UUID
    organization_id: UUID
    scopes: list[str]

    def has_any_scope(self, required: set[str]) -> bool:
        return any(scope in required for scope in self.scopes)
