"""
TextShare API - Main Application
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from textshare.api.v1 import api_router
from textshare.core.config import settings
from textshare.core.errors import PayloadUnavailable, ShareError
from textshare.core.logging import configure_logging
from textshare.core.rate_limit import QuotaLedger
from textshare.db.session import SessionLocal, check_db_connection, init_db
from textshare.metrics import app_info, app_uptime_seconds, update_quota_ledger_size
from textshare.middleware import MetricsMiddleware
from textshare.services.scheduler import PeriodicTask
from textshare.storage.cleanup import LifecycleSweeper
from textshare.storage.payloads import PayloadStore

configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

# Track application start time for uptime calculation
_app_start_time = time.time()


def _reap_quota_ledger(ledger: QuotaLedger) -> int:
    removed = ledger.reap()
    update_quota_ledger_size(len(ledger), removed)
    if removed:
        logger.info(f"Reaped {removed} elapsed quota windows ({len(ledger)} remain)")
    return removed


def _build_background_tasks(app: FastAPI) -> list:
    tasks = []

    if settings.SWEEP_ENABLED:
        sweeper = LifecycleSweeper(
            getattr(app.state, "session_factory", SessionLocal),
            app.state.payload_store,
        )
        tasks.append(PeriodicTask(
            "lifecycle-sweeper",
            sweeper.sweep,
            settings.SWEEP_INTERVAL_HOURS * 3600,
            run_immediately=True,
        ))

    ledger = app.state.quota_ledger
    if ledger is not None:
        tasks.append(PeriodicTask(
            "quota-reaper",
            lambda: _reap_quota_ledger(ledger),
            settings.QUOTA_REAP_INTERVAL_MINUTES * 60,
        ))

    return tasks


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Builds the shared quota ledger and payload store, then runs the
    lifecycle sweeper and the quota reaper until shutdown.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    app_info.labels(version=settings.APP_VERSION, environment=settings.ENVIRONMENT).set(1)

    if settings.DB_AUTO_CREATE:
        init_db()
    if check_db_connection():
        logger.info("Database connection successful")
    else:
        logger.error("Database connection failed")

    # Tests install their own ledger and store before startup
    if not hasattr(app.state, "quota_ledger"):
        app.state.quota_ledger = QuotaLedger.from_settings() if settings.RATE_LIMIT_ENABLED else None
    if not hasattr(app.state, "payload_store"):
        app.state.payload_store = PayloadStore.from_settings()
        try:
            app.state.payload_store.ensure_bucket()
        except PayloadUnavailable:
            logger.warning("Object storage unavailable at startup; file uploads will fail")

    tasks = _build_background_tasks(app)
    for task in tasks:
        task.start()
    app.state.background_tasks = tasks

    yield

    for task in tasks:
        await task.stop()
    logger.info(f"Shutting down {settings.APP_NAME}")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Ephemeral sharing of pastes, files, short links, QR codes and link pages",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
)

# Prometheus metrics middleware
app.add_middleware(MetricsMiddleware)


# Exception handlers
@app.exception_handler(ShareError)
async def share_error_handler(request: Request, exc: ShareError):
    """Map domain errors to their status code and JSON body."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message} ({request.method} {request.url.path})")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "status_code": exc.status_code},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation error",
            "details": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic error contexts may hold exception instances
    details = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        error.pop("input", None)
        details.append(error)
    return details


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.LOG_LEVEL == "DEBUG" else "An error occurred",
        },
    )


# Health check endpoints
@app.get("/health", tags=["health"])
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/health/detailed", tags=["health"])
def detailed_health_check(request: Request):
    """
    Detailed health check with dependency status.

    Checks:
    - PostgreSQL database connectivity
    - MinIO object storage bucket
    - Quota ledger size
    - Background task state
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": settings.APP_VERSION,
        "checks": {},
    }

    # Check PostgreSQL
    try:
        db_healthy = check_db_connection()
        health_status["checks"]["database"] = {
            "status": "healthy" if db_healthy else "unhealthy",
            "type": "postgresql",
        }
        if not db_healthy:
            health_status["status"] = "unhealthy"
    except Exception as e:
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "error": str(e),
        }
        health_status["status"] = "unhealthy"

    # Check MinIO
    payload_store = getattr(request.app.state, "payload_store", None)
    if payload_store is None:
        health_status["checks"]["storage"] = {"status": "not_configured"}
    else:
        try:
            bucket_ok = payload_store.client.bucket_exists(payload_store.bucket_name)
            health_status["checks"]["storage"] = {
                "status": "healthy" if bucket_ok else "degraded",
                "type": "minio",
                "bucket": payload_store.bucket_name,
            }
            if not bucket_ok and health_status["status"] == "healthy":
                health_status["status"] = "degraded"
        except Exception as e:
            health_status["checks"]["storage"] = {
                "status": "unhealthy",
                "error": str(e),
            }
            health_status["status"] = "degraded" if health_status["status"] == "healthy" else health_status["status"]

    # Quota ledger
    ledger = getattr(request.app.state, "quota_ledger", None)
    health_status["checks"]["quota"] = {
        "status": "healthy" if ledger is not None else "disabled",
        "entries": len(ledger) if ledger is not None else 0,
    }

    # Background tasks
    tasks = getattr(request.app.state, "background_tasks", [])
    health_status["checks"]["background_tasks"] = {
        task.name: {
            "running": task.running,
            "runs": task.runs,
            "failures": task.failures,
        }
        for task in tasks
    }

    return health_status


# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    """
    Prometheus metrics endpoint.

    Exposes request, quota, access, sweep and payload metrics
    in Prometheus exposition format.
    """
    app_uptime_seconds.set(time.time() - _app_start_time)
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


@app.get("/", tags=["root"])
async def root():
    """Root endpoint"""
    return {
        "message": "TextShare API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "textshare.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
