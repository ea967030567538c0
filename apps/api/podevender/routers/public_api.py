"""Public API router - bearer-token endpoints for external integrations.

Errors are returned as {"error": "..."} bodies. Booking and slot requests
write an api_request_logs row whatever the outcome; a failure to write
that row never changes the response.
"""

import json
import logging
import time
from typing import Any, Callable
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from podevender.core.deps import get_db, get_listing_cache, get_session_factory
from podevender.core.exceptions import AuthError, SchedulingError, UnexpectedError, ValidationError
from podevender.core.rate_limit import PUBLIC_LIMIT, limiter
from podevender.core.security import parse_bearer
from podevender.core.structured_logging import build_log_context
from podevender.db.enums import READ_APPOINTMENT_SCOPES
from podevender.schemas.appointment import AppointmentRead
from podevender.schemas.auth import TokenContext
from podevender.schemas.public import (
    AvailableSlotsResponse,
    ErrorResponse,
    PublicBookingRequest,
    PublicBookingResponse,
    TimeSlotRead,
    TokenValidationResponse,
)
from podevender.services import api_token_service, public_booking_service, slot_service
from podevender.services.listing_cache import ListingCache
from podevender.services.request_log_service import get_client_ip, get_user_agent, record_request

logger = logging.getLogger(__name__)

router = APIRouter()

BOOKING_ENDPOINT = "/public-api/appointments"
SLOTS_ENDPOINT = "/public-api/available-slots"
INTERNAL_ERROR = "Internal server error"

ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 500)
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _authenticate(request: Request, db: Session) -> TokenContext:
    raw_token = parse_bearer(request.headers.get("authorization"))
    try:
        return api_token_service.validate_token(db, raw_token, get_client_ip(request))
    except AuthError:
        # Callers only learn that the token was rejected
        raise AuthError("Invalid token")


def _parse_body(raw: bytes) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON body")
    return data


class _AuditTrail:
    """Collects what the request log needs while a handler runs."""

    def __init__(self, request: Request, endpoint: str):
        self.request = request
        self.endpoint = endpoint
        self.started = time.perf_counter()
        self.token: TokenContext | None = None
        self.request_body: dict[str, Any] | None = None
        self.response_body: dict[str, Any] | None = None
        self.error_message: str | None = None
        self.status_code = 500

    def write(self, session_factory: Callable[[], Session]) -> None:
        record_request(
            session_factory,
            endpoint=self.endpoint,
            method=self.request.method,
            status_code=self.status_code,
            token_id=self.token.token_id if self.token else None,
            organization_id=self.token.organization_id if self.token else None,
            ip_address=get_client_ip(self.request),
            user_agent=get_user_agent(self.request),
            request_body=self.request_body,
            response_body=self.response_body,
            error_message=self.error_message,
            duration_ms=int((time.perf_counter() - self.started) * 1000),
        )

    def fail(self, status_code: int, message: str) -> JSONResponse:
        self.status_code = status_code
        self.error_message = message
        return _error(status_code, message)


# =============================================================================
# Booking
# =============================================================================

@router.post(
    "/appointments",
    status_code=201,
    response_model=PublicBookingResponse,
    responses=ERROR_RESPONSES,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": PublicBookingRequest.model_json_schema()}}
        }
    },
)
@limiter.limit(PUBLIC_LIMIT)
async def create_appointment(
    request: Request,
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    cache: ListingCache = Depends(get_listing_cache),
):
    """
    Book an appointment on an agenda.

    Requires write:appointments or admin:all. Resolves the client by phone
    (creating it when client_name is given) and rejects overlapping slots
    with 409.
    """
    audit = _AuditTrail(request, BOOKING_ENDPOINT)
    raw_body = await request.body()
    return await run_in_threadpool(_book, audit, raw_body, db, session_factory, cache)


def _book(
    audit: _AuditTrail,
    raw_body: bytes,
    db: Session,
    session_factory: Callable[[], Session],
    cache: ListingCache,
) -> JSONResponse:
    request = audit.request
    try:
        audit.token = _authenticate(request, db)
        body = _parse_body(raw_body)
        audit.request_body = body
        appointment = public_booking_service.book_appointment(db, audit.token, body, cache=cache)

        payload = PublicBookingResponse(appointment=AppointmentRead.from_model(appointment))
        audit.status_code = 201
        audit.response_body = {"appointment_id": str(appointment.id)}
        return JSONResponse(status_code=201, content=jsonable_encoder(payload))
    except SchedulingError as e:
        db.rollback()
        return audit.fail(e.status_code, e.message)
    except Exception as e:
        db.rollback()
        logger.exception(
            "public_booking_failed",
            extra=build_log_context(route=BOOKING_ENDPOINT, method=request.method),
        )
        failure = UnexpectedError(INTERNAL_ERROR)
        audit.status_code = failure.status_code
        audit.error_message = str(e) or e.__class__.__name__
        return _error(failure.status_code, failure.message)
    finally:
        audit.write(session_factory)


# =============================================================================
# Availability
# =============================================================================

@router.get(
    "/available-slots",
    response_model=AvailableSlotsResponse,
    responses=ERROR_RESPONSES,
)
@limiter.limit(PUBLIC_LIMIT)
def available_slots(
    request: Request,
    agenda_id: str | None = None,
    date: str | None = None,
    duration: str | None = None,
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Free slots of an agenda on a day (YYYY-MM-DD), default 30 minutes each."""
    audit = _AuditTrail(request, SLOTS_ENDPOINT)
    audit.request_body = {"agenda_id": agenda_id, "date": date, "duration": duration}
    try:
        audit.token = _authenticate(request, db)
        api_token_service.require_scope(audit.token, READ_APPOINTMENT_SCOPES)
        if not agenda_id or not date:
            raise ValidationError("Missing required parameters: agenda_id, date")
        day = slot_service.parse_day(date)
        duration_minutes = slot_service.parse_duration(duration)

        try:
            agenda_uuid = UUID(agenda_id)
        except ValueError:
            return audit.fail(404, "Agenda not found")
        agenda = slot_service.get_active_agenda(db, audit.token.organization_id, agenda_uuid)
        slots = slot_service.get_available_slots(db, agenda, day, duration_minutes)

        audit.status_code = 200
        audit.response_body = {"slots": len(slots)}
        return AvailableSlotsResponse(
            agenda_id=agenda.id,
            date=day.isoformat(),
            duration=duration_minutes,
            slots=[TimeSlotRead(start=s.start, end=s.end) for s in slots],
        )
    except SchedulingError as e:
        db.rollback()
        return audit.fail(e.status_code, e.message)
    except Exception as e:
        db.rollback()
        logger.exception(
            "available_slots_failed",
            extra=build_log_context(route=SLOTS_ENDPOINT, method=request.method),
        )
        failure = UnexpectedError(INTERNAL_ERROR)
        audit.status_code = failure.status_code
        audit.error_message = str(e) or e.__class__.__name__
        return _error(failure.status_code, failure.message)
    finally:
        audit.write(session_factory)


# =============================================================================
# Token validation
# =============================================================================

@router.get(
    "/validate-token",
    response_model=TokenValidationResponse,
    responses=ERROR_RESPONSES,
)
def validate_token(
    request: Request,
    db: Session = Depends(get_db),
):
    """Check a bearer token and return its organization and scopes."""
    raw_token = parse_bearer(request.headers.get("authorization"))
    try:
        context = api_token_service.validate_token(db, raw_token, get_client_ip(request))
    except SchedulingError as e:
        return JSONResponse(status_code=e.status_code, content={"valid": False, "error": e.message})
    return TokenValidationResponse(
        organization_id=context.organization_id,
        scopes=context.scopes,
        token_id=context.token_id,
    )
