"""SQLAlchemy ORM models."""

from podevender.db.models.agendas import Agenda
from podevender.db.models.api import ApiRequestLog, ApiToken
from podevender.db.models.appointments import Appointment
from podevender.db.models.auth import Membership, Organization, User
from podevender.db.models.clients import Client

__all__ = [
    "Agenda",
    "ApiRequestLog",
    "ApiToken",
    "Appointment",
    "Client",
    "Membership",
    "Organization",
    "User",
]
