"""API token service - issuing and validating public API bearer tokens.

Raw tokens are shown once at creation; only their SHA256 hash is stored.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from podevender.core.exceptions import AuthError, AuthorizationError, NotFoundError
from podevender.core.security import generate_api_token, hash_api_token
from podevender.core.structured_logging import build_log_context
from podevender.db.models import ApiToken
from podevender.schemas.api_token import ApiTokenCreate, ApiTokenUpdate
from podevender.schemas.auth import TokenContext
from podevender.services import messages

logger = logging.getLogger(__name__)

TOKEN_PREFIX_LENGTH = 10


def validate_token(
    db: Session,
    raw_token: str | None,
    client_ip: str | None = None,
    now: datetime | None = None,
) -> TokenContext:
    """
    Resolve a bearer token to its organization and scopes.

    Checks, in order: present, known and active, not expired, caller IP in
    the allow-list (when one is configured). Records last_used_at.

    Raises:
        AuthError: Missing, unknown, inactive or expired token (401)
        AuthorizationError: Caller IP not in the token's allow-list (403)
    """
    if not raw_token:
        raise AuthError("Missing or invalid Authorization header")

    token = db.query(ApiToken).filter(
        ApiToken.token_hash == hash_api_token(raw_token),
        ApiToken.is_active.is_(True),
    ).first()
    if not token:
        raise AuthError("Invalid token")

    now = now or datetime.now(timezone.utc)
    if token.expires_at and token.expires_at < now:
        logger.info("api_token_expired", extra=build_log_context(org_id=token.organization_id))
        raise AuthError("Token expired")

    if token.allowed_ips and client_ip and client_ip not in token.allowed_ips:
        logger.info("api_token_ip_rejected", extra=build_log_context(org_id=token.organization_id))
        raise AuthorizationError("IP not allowed")

    token.last_used_at = now
    db.commit()

    return TokenContext(
        token_id=token.id,
        organization_id=token.organization_id,
        scopes=list(token.scopes or []),
    )


def require_scope(context: TokenContext, allowed: set[str]) -> None:
    """Raise AuthorizationError unless the token carries one of the allowed scopes."""
    if not context.has_any_scope(allowed):
        raise AuthorizationError("Insufficient permissions")


# =============================================================================
# Staff management
# =============================================================================

def list_tokens(db: Session, org_id: UUID) -> list[ApiToken]:
    return db.query(ApiToken).filter(
        ApiToken.organization_id == org_id,
    ).order_by(ApiToken.created_at.desc()).all()


def get_token(db: Session, org_id: UUID, token_id: UUID) -> ApiToken:
    token = db.query(ApiToken).filter(
        ApiToken.id == token_id,
        ApiToken.organization_id == org_id,
    ).first()
    if not token:
        raise NotFoundError(messages.TOKEN_NOT_FOUND)
    return token


def create_token(
    db: Session,
    org_id: UUID,
    user_id: UUID,
    data: ApiTokenCreate,
) -> tuple[ApiToken, str]:
    """Create a token. Returns (row, raw_token); the raw value is not recoverable later."""
    raw_token = generate_api_token()
    token = ApiToken(
        organization_id=org_id,
        created_by=user_id,
        name=data.name,
        description=data.description,
        token_hash=hash_api_token(raw_token),
        token_prefix=raw_token[:TOKEN_PREFIX_LENGTH],
        scopes=[scope.value for scope in data.scopes],
        allowed_ips=data.allowed_ips or None,
        rate_limit_per_minute=data.rate_limit_per_minute,
        expires_at=data.expires_at,
    )
    db.add(token)
    db.commit()
    db.refresh(token)
    logger.info(
        "api_token_created",
        extra=build_log_context(user_id=user_id, org_id=org_id, token_id=str(token.id)),
    )
    return token, raw_token


def update_token(db: Session, org_id: UUID, token_id: UUID, data: ApiTokenUpdate) -> ApiToken:
    token = get_token(db, org_id, token_id)
    changes = data.model_dump(exclude_unset=True)

    if "scopes" in changes and changes["scopes"] is not None:
        token.scopes = [getattr(scope, "value", scope) for scope in changes.pop("scopes")]
    else:
        changes.pop("scopes", None)
    if "allowed_ips" in changes:
        token.allowed_ips = changes.pop("allowed_ips") or None

    for key, value in changes.items():
        if value is None and key in ("name", "is_active"):
            continue
        setattr(token, key, value)

    db.commit()
    db.refresh(token)
    return token


def delete_token(db: Session, org_id: UUID, token_id: UUID) -> None:
    token = get_token(db, org_id, token_id)
    db.delete(token)
    db.commit()
    logger.info("api_token_deleted", extra=build_log_context(org_id=org_id, token_id=str(token_id)))
