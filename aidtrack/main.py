"""FastAPI application entry point."""
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from aidtrack.core.config import settings
from aidtrack.core.structured_logging import build_log_context, configure_logging
from aidtrack.db.session import engine

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
        send_default_pii=False,  # Beneficiary data never leaves the API
    )
    logger.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from aidtrack.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="aidtrack API",
    description="Multi-tenant case management API for social-aid associations",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)


# ============================================================================
# Request logging
# ============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Assign or propagate X-Request-ID and log one line per request (ids only)."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    started = time.perf_counter()
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
    finally:
        route = request.scope.get("route")
        context = build_log_context(
            user_id=getattr(request.state, "user_id", None),
            org_id=getattr(request.state, "org_id", None),
            request_id=request_id,
            route=getattr(route, "path", request.url.path),
            method=request.method,
            status_code=status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        if status_code >= 500:
            logger.error("request failed", extra=context)
        else:
            logger.info("request completed", extra=context)

    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# Error handlers
# ============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report schema violations as 400 with field locations."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"detail": "Invalid data", "errors": errors}),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log with request context and answer a generic 500."""
    context = build_log_context(
        user_id=getattr(request.state, "user_id", None),
        org_id=getattr(request.state, "org_id", None),
        request_id=getattr(request.state, "request_id", None),
        route=request.url.path,
        method=request.method,
    )
    logger.exception("Unhandled error", extra=context)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ============================================================================
# Routers
# ============================================================================

from aidtrack.routers import (
    aids,
    articles,
    audit,
    auth,
    categories,
    dashboard,
    documents,
    export,
    families,
    interventions,
    needs,
    users,
)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])

# Families module: mixed paths (/families/{id}/children, /children/{id}, /notes/{id})
app.include_router(families.router, tags=["families"])
app.include_router(needs.router, tags=["needs"])  # /needs and /families/{id}/needs
app.include_router(aids.router, tags=["aids"])  # /aids and /families/{id}/aids
app.include_router(documents.router, tags=["documents"])  # /documents and /families/{id}/documents
app.include_router(interventions.router, prefix="/interventions", tags=["interventions"])

# Stock catalog
app.include_router(categories.router, prefix="/categories", tags=["stock"])
app.include_router(articles.router, prefix="/articles", tags=["stock"])

app.include_router(audit.router, prefix="/audit", tags=["audit"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(export.router, tags=["export"])  # /export


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
