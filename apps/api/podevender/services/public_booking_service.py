"""Public booking - appointments created through a bearer API token.

Handles:
- Scope check (write:appointments or admin:all)
- Field type, length, required-field and ISO-8601 validation
- Agenda ownership check
- Conflict check on the agenda, under a row lock on the agenda
- Client resolution by phone (created when a name is supplied)
- Insert attributed to the agenda owner and the token's organization

Authentication and the request audit log are handled by the router.
"""

import logging
from typing import Any
from uuid import UUID

import pydantic
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from podevender.core.exceptions import ConflictError, NotFoundError, ValidationError
from podevender.core.structured_logging import build_log_context, mask_phone
from podevender.db.enums import AppointmentStatus, WRITE_APPOINTMENT_SCOPES
from podevender.db.models import Agenda, Appointment, Client
from podevender.schemas.auth import TokenContext
from podevender.schemas.client import ClientCreate
from podevender.schemas.public import PublicBookingRequest
from podevender.services import client_service
from podevender.services.api_token_service import require_scope
from podevender.services.conflict_service import ConflictScope, find_conflict
from podevender.services.interval import TimeInterval, parse_instant
from podevender.services.listing_cache import ListingCache

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("agenda_id", "start_time", "end_time", "client_phone")
DEFAULT_TITLE = "Agendamento via API"
AGENDA_NOT_FOUND = "Agenda not found or not accessible"
SLOT_TAKEN = "Time slot already booked"


def parse_request(payload: dict[str, Any]) -> PublicBookingRequest:
    """Check field types and lengths of a booking body."""
    try:
        return PublicBookingRequest.model_validate(payload)
    except pydantic.ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        raise ValidationError(f"Invalid fields: {', '.join(fields)}")


def _validate_payload(data: PublicBookingRequest) -> tuple[UUID | None, TimeInterval]:
    missing = [name for name in REQUIRED_FIELDS if not getattr(data, name)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(REQUIRED_FIELDS)}")

    start = parse_instant(data.start_time, "start_time")
    end = parse_instant(data.end_time, "end_time")
    candidate = TimeInterval.of(start, end)

    try:
        agenda_id = UUID(data.agenda_id)
    except ValueError:
        # Malformed ids cannot belong to the organization
        agenda_id = None
    return agenda_id, candidate


def _lock_agenda(db: Session, org_id: UUID, agenda_id: UUID | None) -> Agenda:
    """Fetch the organization's active agenda and hold a row lock on it."""
    if agenda_id is None:
        raise NotFoundError(AGENDA_NOT_FOUND)
    agenda = db.query(Agenda).filter(
        Agenda.id == agenda_id,
        Agenda.organization_id == org_id,
        Agenda.is_active.is_(True),
    ).with_for_update().first()
    if not agenda:
        raise NotFoundError(AGENDA_NOT_FOUND)
    return agenda


def resolve_client(
    db: Session,
    org_id: UUID,
    owner_id: UUID,
    phone: str,
    name: str | None,
    email: str | None,
) -> Client | None:
    """
    Find the client by phone, or create one when a name is given.

    A client that cannot be created (invalid email, lost race on the phone)
    is logged and the booking goes ahead with the existing row or no client.
    """
    existing = client_service.find_by_phone(db, org_id, phone)
    if existing:
        return existing
    if not name:
        return None

    log_context = build_log_context(org_id=org_id, phone=mask_phone(phone))
    try:
        data = ClientCreate(name=name, phone=phone, email=email or None)
        return client_service.create_client(db, org_id, data, user_id=owner_id, commit=False)
    except ConflictError:
        logger.info("public_booking_client_exists", extra=log_context)
        return client_service.find_by_phone(db, org_id, phone)
    except (pydantic.ValidationError, SQLAlchemyError):
        logger.warning("public_booking_client_create_failed", extra=log_context, exc_info=True)
        return None


def book_appointment(
    db: Session,
    token: TokenContext,
    payload: dict[str, Any],
    cache: ListingCache | None = None,
) -> Appointment:
    """
    Create an appointment for an authenticated public API caller.

    Raises:
        AuthorizationError: Token lacks write scope (403)
        ValidationError: Missing/malformed fields or empty interval (400)
        NotFoundError: Agenda absent, inactive or in another org (404)
        ConflictError: Overlaps a non-cancelled appointment on the agenda (409)
    """
    require_scope(token, WRITE_APPOINTMENT_SCOPES)
    data = parse_request(payload)
    agenda_id, candidate = _validate_payload(data)
    org_id = token.organization_id

    agenda = _lock_agenda(db, org_id, agenda_id)
    conflict = find_conflict(db, candidate, ConflictScope.for_agenda(org_id, agenda.id))
    if conflict is not None:
        raise ConflictError(SLOT_TAKEN)

    client_name = (data.client_name or "").strip() or None
    client = resolve_client(
        db,
        org_id,
        agenda.user_id,
        data.client_phone,
        client_name,
        data.client_email,
    )

    appointment = Appointment(
        organization_id=org_id,
        user_id=agenda.user_id,
        agenda_id=agenda.id,
        client_id=client.id if client else None,
        title=data.title or client_name or DEFAULT_TITLE,
        description=data.description or "",
        start_time=candidate.start,
        end_time=candidate.end,
        status=AppointmentStatus.SCHEDULED.value,
    )
    db.add(appointment)
    try:
        db.commit()
    except IntegrityError:
        # Exclusion constraint caught a booking that raced past the check
        db.rollback()
        raise ConflictError(SLOT_TAKEN)
    db.refresh(appointment)

    if cache is not None:
        cache.invalidate(org_id)
    logger.info(
        "public_booking_created",
        extra=build_log_context(
            org_id=org_id,
            appointment_id=str(appointment.id),
            token_id=str(token.token_id),
        ),
    )
    return appointment
