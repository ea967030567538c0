"""FastAPI application entry point."""
import logging
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from podevender.core.config import settings
from podevender.core.structured_logging import configure_logging
from podevender.db.session import engine
from podevender.services.listing_cache import ListingCache

configure_logging()
logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from podevender.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Pode Vender API",
    description="Scheduling and CRM API for WhatsApp sales teams",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Appointment listings cache, shared by all requests of this process
app.state.listing_cache = ListingCache(
    ttl_seconds=settings.LISTING_CACHE_TTL_SECONDS,
    max_entries=settings.LISTING_CACHE_MAX_ENTRIES,
)

# CORS middleware for the staff dashboard (cookie auth, fixed origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["X-Request-ID"],
)

PUBLIC_API_PREFIX = "/public-api"
PUBLIC_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


@app.middleware("http")
async def public_api_cors(request: Request, call_next):
    """Public API: any origin, pre-flight answered with an empty 200."""
    if not request.url.path.startswith(PUBLIC_API_PREFIX):
        return await call_next(request)

    if request.method == "OPTIONS":
        return Response(status_code=200, headers=PUBLIC_CORS_HEADERS)

    response = await call_next(request)
    if "access-control-allow-credentials" in response.headers:
        del response.headers["access-control-allow-credentials"]
    for name, value in PUBLIC_CORS_HEADERS.items():
        response.headers[name] = value
    return response


@app.middleware("http")
async def request_id(request: Request, call_next):
    """Propagate or assign X-Request-ID."""
    rid = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = rid
    response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    return response


# ============================================================================
# Routers
# ============================================================================

from podevender.routers import agendas, api_tokens, appointments, clients, logs, public_api

# Staff dashboard (session cookie)
app.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
app.include_router(agendas.router, prefix="/agendas", tags=["agendas"])
app.include_router(clients.router, prefix="/clients", tags=["clients"])
app.include_router(api_tokens.router, prefix="/api-tokens", tags=["api-tokens"])
app.include_router(logs.router, prefix="/logs", tags=["logs"])

# Public API (bearer token)
app.include_router(public_api.router, prefix=PUBLIC_API_PREFIX, tags=["public-api"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
