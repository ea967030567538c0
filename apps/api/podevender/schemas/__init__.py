"""Pydantic schemas for API request/response models."""

from podevender.schemas.agenda import AgendaCreate, AgendaRead, AgendaUpdate
from podevender.schemas.api_token import (
    ApiTokenCreate,
    ApiTokenCreated,
    ApiTokenRead,
    ApiTokenUpdate,
)
from podevender.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentMutationResponse,
    AppointmentRead,
    AppointmentUpdate,
    MessageResponse,
)
from podevender.schemas.auth import TokenContext, UserSession
from podevender.schemas.client import ClientCreate, ClientRead, ClientUpdate
from podevender.schemas.public import (
    AvailableSlotsResponse,
    ErrorResponse,
    PublicBookingRequest,
    PublicBookingResponse,
    TimeSlotRead,
    TokenValidationResponse,
)
from podevender.schemas.request_log import ApiRequestLogListResponse, ApiRequestLogRead

__all__ = [
    # Auth
    "TokenContext",
    "UserSession",
    # Appointments
    "AppointmentCreate",
    "AppointmentListResponse",
    "AppointmentMutationResponse",
    "AppointmentRead",
    "AppointmentUpdate",
    "MessageResponse",
    # Agendas
    "AgendaCreate",
    "AgendaRead",
    "AgendaUpdate",
    # Clients
    "ClientCreate",
    "ClientRead",
    "ClientUpdate",
    # API tokens
    "ApiTokenCreate",
    "ApiTokenCreated",
    "ApiTokenRead",
    "ApiTokenUpdate",
    # Public API
    "AvailableSlotsResponse",
    "ErrorResponse",
    "PublicBookingRequest",
    "PublicBookingResponse",
    "TimeSlotRead",
    "TokenValidationResponse",
    # Logs
    "ApiRequestLogListResponse",
    "ApiRequestLogRead",
]
