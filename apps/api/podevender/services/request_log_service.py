"""Request audit log for the public API.

Rows are written in their own session so that a rolled-back booking still
leaves a log entry, and a failure to log never replaces the response the
caller gets.
"""

import logging
from typing import Any, Callable
from uuid import UUID

from fastapi import Request
from sqlalchemy.orm import Session

from podevender.core.config import settings
from podevender.db.models import ApiRequestLog
from podevender.utils.pagination import Window

logger = logging.getLogger(__name__)


def get_client_ip(request: Request | None) -> str | None:
    """
    Extract client IP from request.

    Only trusts X-Forwarded-For / X-Real-IP when TRUST_PROXY_HEADERS=True
    (behind reverse proxy). Otherwise uses request.client.host.
    """
    if not request:
        return None

    if settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # X-Forwarded-For: client, proxy1, proxy2 - take first
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

    if request.client:
        return request.client.host

    return None


def get_user_agent(request: Request | None) -> str | None:
    """Extract user agent from request."""
    if not request:
        return None
    ua = request.headers.get("user-agent", "")
    # Truncate to 500 chars (DB limit)
    return ua[:500] if ua else None


def record_request(
    session_factory: Callable[[], Session],
    *,
    endpoint: str,
    method: str,
    status_code: int,
    token_id: UUID | None = None,
    organization_id: UUID | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    request_body: dict[str, Any] | None = None,
    response_body: dict[str, Any] | None = None,
    error_message: str | None = None,
    duration_ms: int | None = None,
) -> bool:
    """Persist one audit row. Returns False (and logs) when the write fails."""
    try:
        with session_factory() as db:
            db.add(
                ApiRequestLog(
                    token_id=token_id,
                    organization_id=organization_id,
                    endpoint=endpoint,
                    method=method,
                    status_code=status_code,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    request_body=request_body,
                    response_body=response_body,
                    error_message=error_message,
                    duration_ms=duration_ms,
                )
            )
            db.commit()
        return True
    except Exception:
        logger.exception("api_request_log_failed", extra={"endpoint": endpoint, "status_code": status_code})
        return False


def list_logs(db: Session, org_id: UUID, window: Window) -> tuple[list[ApiRequestLog], int]:
    """Organization's request logs, newest first."""
    query = db.query(ApiRequestLog).filter(
        ApiRequestLog.organization_id == org_id,
    ).order_by(ApiRequestLog.created_at.desc(), ApiRequestLog.id.desc())
    return window.apply(query)
