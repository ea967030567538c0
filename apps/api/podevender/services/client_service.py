"""Client service - customers of an organization, keyed by phone."""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from podevender.core.exceptions import ConflictError, NotFoundError
from podevender.core.structured_logging import build_log_context, mask_phone
from podevender.db.models import Client
from podevender.schemas.client import ClientCreate, ClientUpdate
from podevender.services import messages
from podevender.services.listing_cache import ListingCache

logger = logging.getLogger(__name__)


def normalize_phone(phone: str) -> str:
    """Strip surrounding whitespace; the stored value is otherwise verbatim."""
    return phone.strip()


def list_clients(db: Session, org_id: UUID) -> list[Client]:
    return db.query(Client).filter(
        Client.organization_id == org_id,
    ).order_by(Client.name.asc()).all()


def get_client(db: Session, org_id: UUID, client_id: UUID) -> Client:
    client = db.query(Client).filter(
        Client.id == client_id,
        Client.organization_id == org_id,
    ).first()
    if not client:
        raise NotFoundError(messages.CLIENT_NOT_FOUND)
    return client


def find_by_phone(db: Session, org_id: UUID, phone: str) -> Client | None:
    """Exact phone lookup within the organization."""
    return db.query(Client).filter(
        Client.organization_id == org_id,
        Client.phone == normalize_phone(phone),
    ).first()


def create_client(
    db: Session,
    org_id: UUID,
    data: ClientCreate,
    user_id: UUID | None = None,
    commit: bool = True,
) -> Client:
    """
    Create a client.

    With commit=False the row is inserted in a savepoint and the caller
    commits; a failed insert leaves the caller's transaction usable.

    Raises:
        ConflictError: Another client of the organization has this phone
    """
    phone = normalize_phone(data.phone)
    if find_by_phone(db, org_id, phone):
        raise ConflictError(messages.CLIENT_DUPLICATE_PHONE)

    client = Client(
        organization_id=org_id,
        user_id=user_id,
        name=data.name.strip(),
        phone=phone,
        email=data.email,
        cpf=data.cpf,
        city=data.city,
        notes=data.notes,
    )
    try:
        if commit:
            db.add(client)
            db.commit()
            db.refresh(client)
        else:
            with db.begin_nested():
                db.add(client)
                db.flush()
    except IntegrityError:
        if commit:
            db.rollback()
        raise ConflictError(messages.CLIENT_DUPLICATE_PHONE)

    logger.info(
        "client_created",
        extra=build_log_context(org_id=org_id, phone=mask_phone(phone)),
    )
    return client


def update_client(
    db: Session,
    org_id: UUID,
    client_id: UUID,
    data: ClientUpdate,
    cache: ListingCache | None = None,
) -> Client:
    """Update a client; appointment listings embed client details."""
    client = get_client(db, org_id, client_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("phone"):
        phone = normalize_phone(changes["phone"])
        existing = find_by_phone(db, org_id, phone)
        if existing and existing.id != client.id:
            raise ConflictError(messages.CLIENT_DUPLICATE_PHONE)
        changes["phone"] = phone

    for key, value in changes.items():
        if value is None and key in ("name", "phone"):
            continue
        setattr(client, key, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(messages.CLIENT_DUPLICATE_PHONE)
    db.refresh(client)
    if cache is not None:
        cache.invalidate(org_id)
    return client


def delete_client(
    db: Session,
    org_id: UUID,
    client_id: UUID,
    cache: ListingCache | None = None,
) -> None:
    """Delete a client. Appointments keep their rows with client_id cleared."""
    client = get_client(db, org_id, client_id)
    db.delete(client)
    db.commit()
    if cache is not None:
        cache.invalidate(org_id)
