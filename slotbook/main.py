"""FastAPI application entry point."""
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from slotbook.core.config import settings
from slotbook.core.deps import get_store
from slotbook.core.structured_logging import configure_logging
from slotbook.services.errors import BookingError
from slotbook.stores import BookingStore, DatabaseStore

configure_logging(settings.LOG_LEVEL)
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
        send_default_pii=False,  # Don't send client contact details to Sentry
    )
    logger.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slotbook.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Slotbook API",
    description="Service slot availability and booking API",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Map domain errors to `{"detail", "code"}` responses."""
    body = {"detail": exc.message, "code": exc.code}
    conflicting_ids = getattr(exc, "conflicting_ids", None)
    if conflicting_ids:
        body["conflicting_ids"] = [str(i) for i in conflicting_ids]
    return JSONResponse(status_code=exc.status_code, content=body)


# ============================================================================
# Routers
# ============================================================================

from slotbook.routers import appointments_router, booking_router

# Public Booking (unauthenticated)
app.include_router(booking_router, prefix="/book", tags=["booking"])

# Appointments (contractor actions)
app.include_router(appointments_router, prefix="/appointments", tags=["appointments"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health(store: BookingStore = Depends(get_store)):
    """
    Health check endpoint.

    Verifies database connectivity when the database store is in use.
    """
    if isinstance(store, DatabaseStore):
        with store.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    return {
        "status": "ok",
        "env": settings.ENV,
        "version": settings.VERSION,
        "store": store.backend,
    }
