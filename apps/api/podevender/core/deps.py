"""FastAPI dependencies: database sessions, staff session auth, shared state."""

from typing import Callable, Generator
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from podevender.core.security import decode_session_token
from podevender.db.session import SessionLocal


# Cookie and header names
COOKIE_NAME = "pv_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """Request-scoped database session, closed when the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    """Factory for side-channel sessions (request audit log)."""
    return SessionLocal


def get_listing_cache(request: Request):
    """The application's listing cache (lives on app.state)."""
    return request.app.state.listing_cache


def _session_claims(request: Request) -> dict:
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return decode_session_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid session")


def get_current_user(request: Request, db: Session = Depends(get_db)):
    """
    Staff user behind the session cookie.

    The cookie must carry a valid JWT whose token_version still matches the
    user row, so bumping token_version logs the user out everywhere.
    """
    from podevender.db.models import User

    claims = _session_claims(request)
    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid session")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Account unavailable")
    if user.token_version != claims.get("token_version"):
        raise HTTPException(status_code=401, detail="Session revoked")
    return user


def get_current_session(request: Request, db: Session = Depends(get_db)):
    """
    Session context (user, organization, role) for dashboard endpoints.

    403 when the user has no membership or an unknown role.
    """
    from podevender.db.enums import Role
    from podevender.db.models import Membership
    from podevender.schemas.auth import UserSession

    user = get_current_user(request, db)
    membership = db.query(Membership).filter(Membership.user_id == user.id).first()
    if not membership:
        raise HTTPException(status_code=403, detail="No organization membership")
    if not Role.has_value(membership.role):
        raise HTTPException(status_code=403, detail=f"Unknown role '{membership.role}'")

    return UserSession(
        user_id=user.id,
        org_id=membership.organization_id,
        role=Role(membership.role),
        email=user.email,
        display_name=user.display_name,
    )


def require_roles(allowed_roles):
    """
    Dependency factory restricting an endpoint to some roles.

    Usage:
        session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_TOKENS))
    """
    def dependency(request: Request, db: Session = Depends(get_db)):
        session = get_current_session(request, db)
        if session.role not in allowed_roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{session.role.value}' cannot perform this action",
            )
        return session
    return dependency


def require_csrf_header(request: Request) -> None:
    """Reject cookie-authenticated mutations that lack the CSRF header (403)."""
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'",
        )
