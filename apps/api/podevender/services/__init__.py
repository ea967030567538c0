"""Service layer modules."""

# Import service modules (not individual functions) for cleaner access
from podevender.services import (
    agenda_service,
    api_token_service,
    appointment_service,
    client_service,
    conflict_service,
    public_booking_service,
    request_log_service,
    slot_service,
)
from podevender.services.interval import TimeInterval, overlaps
from podevender.services.listing_cache import ListingCache

__all__ = [
    "ListingCache",
    "TimeInterval",
    "agenda_service",
    "api_token_service",
    "appointment_service",
    "client_service",
    "conflict_service",
    "overlaps",
    "public_booking_service",
    "request_log_service",
    "slot_service",
]
