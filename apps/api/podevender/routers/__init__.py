"""API routers."""

from podevender.routers.agendas import router as agendas_router
from podevender.routers.api_tokens import router as api_tokens_router
from podevender.routers.appointments import router as appointments_router
from podevender.routers.clients import router as clients_router
from podevender.routers.logs import router as logs_router
from podevender.routers.public_api import router as public_api_router

__all__ = [
    "agendas_router",
    "api_tokens_router",
    "appointments_router",
    "clients_router",
    "logs_router",
    "public_api_router",
]
