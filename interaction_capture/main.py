"""Main FastAPI application - customer interaction capture"""

import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import JSONResponse

from interaction_capture.config import get_settings
from interaction_capture.database import AsyncSessionLocal, close_db, init_db
from interaction_capture.api import auth, form_options, interactions
from interaction_capture.exceptions import InteractionCaptureError
from interaction_capture.services.auth import ensure_bootstrap_admin
from interaction_capture.services.form_options import seed_default_options
from interaction_capture import models  # noqa: F401

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "interaction-capture"
VERSION = "0.1.0"

# Initialize Sentry if DSN is provided
if settings.SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        release=VERSION,
        integrations=[
            FastApiIntegration(),
        ],
    )
    logging.info("Sentry initialized for environment: %s", settings.SENTRY_ENVIRONMENT)
else:
    logging.info("Sentry disabled (no DSN configured)")

# Prometheus metrics (kept minimal; avoid high-cardinality labels).
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)
HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)

# Create FastAPI app
app = FastAPI(
    title="Interaction Capture API",
    description="Customer interaction logging for retail staff, with an admin dashboard API",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(InteractionCaptureError)
async def interaction_capture_exception_handler(request, exc):
    """Domain errors raised outside a route body (e.g. gateway construction)."""
    return interactions.submission_error_response(exc)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all for unhandled exceptions: log, report to Sentry, clean 500."""
    logger.exception("Unhandled exception: %s %s", request.method, request.url)
    if settings.SENTRY_DSN:
        import sentry_sdk
        sentry_sdk.capture_exception(exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


# Lifecycle events
@app.on_event("startup")
async def validate_secrets():
    if settings.SECRET_KEY in ("change-me-in-production", "test-secret-key"):
        import warnings
        warnings.warn("SECURITY WARNING: SECRET_KEY is using a default/weak value! Generate a secure key for production.", stacklevel=2)


@app.on_event("startup")
async def startup_event():
    """Create tables, seed default options and the bootstrap admin"""
    logger.info("Starting Interaction Capture API...")
    logger.info("Database: %s", settings.DATABASE_URL.split("@")[-1])  # Hide credentials in logs

    # No migration tooling: tables are created in place
    try:
        await init_db()
    except SQLAlchemyError as exc:
        logger.warning("create_all race condition (harmless if tables exist): %s", exc)

    try:
        async with AsyncSessionLocal() as db:
            if settings.SEED_DEFAULT_OPTIONS:
                await seed_default_options(db)
            await ensure_bootstrap_admin(db)
    except SQLAlchemyError as exc:
        # The form still loads with default options; admin setup retries next start.
        logger.error("Startup seeding failed: %s", exc)

    if not settings.gateway_configured:
        logger.error(
            "Data store not configured (GATEWAY_BACKEND=%s); submissions will be refused",
            settings.GATEWAY_BACKEND,
        )

    logger.info("Database initialized successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down Interaction Capture API...")
    await close_db()


@app.middleware("http")
async def prometheus_http_middleware(request, call_next):
    """
    Record request metrics with low-cardinality path templates.
    """
    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = getattr(response, "status_code", 500) or 500
        return response
    finally:
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path) or request.url.path
        # Avoid scraping loops / noise.
        if path not in {"/api/metrics", "/metrics"}:
            elapsed = time.perf_counter() - start
            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                path=path,
                status_code=str(status_code),
            ).inc()
            HTTP_REQUEST_DURATION_SECONDS.labels(
                method=request.method,
                path=path,
            ).observe(elapsed)


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint: verifies DB connectivity."""
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": SERVICE_NAME, "error": str(e)}
        )
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "submissions_enabled": settings.gateway_configured,
    }


@app.get("/api/health")
async def health_check_api():
    """Health check endpoint (API namespace, for reverse proxies)."""
    return await health_check()


@app.get("/api/metrics")
async def prometheus_metrics():
    """
    Prometheus scrape endpoint.

    Intended to be scraped locally; do not expose publicly.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(interactions.router, prefix="/api")
app.include_router(form_options.router, prefix="/api")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "service": "Interaction Capture API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "auth": "/api/auth",
            "interactions": "/api/interactions",
            "form_options": "/api/form-options",
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "interaction_capture.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
