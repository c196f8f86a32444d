"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from casecore.core.config import settings
from casecore.core.errors import CaseCoreError
from casecore.core.structured_logging import build_log_context
from casecore.db.session import engine

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Case API",
    description="Multi-office case management API",
    version=settings.VERSION,
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["X-Request-ID"],
)


# ============================================================================
# Domain errors
# ============================================================================

@app.exception_handler(CaseCoreError)
async def case_core_error_handler(request: Request, exc: CaseCoreError):
    """Render domain errors as {"detail": ..., **extra} with their status code."""
    logger.info(
        "domain_error",
        extra={
            **build_log_context(
                request_id=request.headers.get("x-request-id"),
                route=request.url.path,
                method=request.method,
            ),
            "status_code": exc.status_code,
            "error": type(exc).__name__,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ============================================================================
# Routers
# ============================================================================

from casecore.routers import (  # noqa: E402
    appointments_router,
    cases_router,
    client_router,
    notifications_router,
    tasks_router,
)

app.include_router(cases_router, prefix="/cases", tags=["cases"])
app.include_router(appointments_router, prefix="/appointments", tags=["appointments"])
app.include_router(tasks_router, prefix="/tasks", tags=["tasks"])

# Client portal (own records only)
app.include_router(client_router, prefix="/client", tags=["client"])

# Notifications (user-scoped)
app.include_router(notifications_router, prefix="/me/notifications", tags=["notifications"])


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
