# app/main.py - Application factory wiring, middleware and system endpoints
import asyncio
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from prometheus_fastapi_instrumentator import Instrumentator

# Core imports
from app.core.config import settings
from app.core import tracing
from app.db.database import get_db, init_db, engine, AsyncSessionLocal

# API routes
from app.api.v1 import api_router

# Middleware
from app.middleware.security import SecurityHeadersMiddleware
from app.middleware.cors import setup_cors_middleware
from app.middleware.rate_limiting import setup_rate_limiting
from app.middleware.monitoring import MonitoringMiddleware

# Exception handlers
from app.exceptions.handlers import register_exception_handlers

from app.db.crud.token import cleanup_expired_tokens

SERVICE_NAME = "TaskNest API"


async def periodic_token_cleanup():
    """Removes expired refresh and blacklisted tokens on a fixed interval"""
    while True:
        try:
            async with AsyncSessionLocal() as db:
                stats = await cleanup_expired_tokens(db, batch_size=1000)
                tracing.info("Token cleanup completed", cleanup_stats=stats, task="periodic_cleanup")
        except Exception as e:
            tracing.error(f"Token cleanup failed: {e}", task="periodic_cleanup", error_type=type(e).__name__)

        await asyncio.sleep(settings.TOKEN_CLEANUP_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    tracing.info(f"{SERVICE_NAME} startup initiated")

    await init_db()
    cleanup_task = asyncio.create_task(periodic_token_cleanup())

    tracing.info(
        f"{SERVICE_NAME} startup complete",
        environment=settings.ENVIRONMENT,
        rate_limiting=settings.RATE_LIMIT_ENABLED,
        gate_all_status_changes=settings.GATE_ALL_STATUS_CHANGES,
        auto_create_categories=settings.AUTO_CREATE_CATEGORIES
    )

    yield

    tracing.info(f"{SERVICE_NAME} shutdown initiated")
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    await engine.dispose()
    tracing.info(f"{SERVICE_NAME} shutdown complete")


app = FastAPI(
    title=SERVICE_NAME,
    description="Multi-user hierarchical task tracker",
    version=tracing.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT == "development" else None
)

# =============================================================================
# TRACING & MIDDLEWARE (last added runs first)
# =============================================================================

tracing.setup_tracing(app, engine)

app.add_middleware(MonitoringMiddleware)
app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.ENVIRONMENT == "production")
setup_cors_middleware(app)
setup_rate_limiting(app)

register_exception_handlers(app)

# =============================================================================
# PROMETHEUS METRICS
# =============================================================================

instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_instrument_requests_inprogress=True,
    inprogress_labels=True,
    excluded_handlers=["/metrics", "/health"]
)
instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

# =============================================================================
# ROUTES
# =============================================================================

app.include_router(api_router, prefix="/api/v1")


@app.get("/health", tags=["System"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness plus a database round trip"""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        tracing.error(f"Health check failed: {e}", endpoint="/health", error_type=type(e).__name__)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy - database connection failed"
        )

    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": tracing.SERVICE_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": time.time(),
        "trace_id": tracing.get_current_trace_id(),
        "checks": {
            "database": "connected",
            "tracing": "otel" if settings.ENABLE_OTEL_EXPORTER else "local",
            "rate_limiting": "enabled" if settings.RATE_LIMIT_ENABLED else "disabled"
        }
    }


@app.get("/", tags=["System"])
async def api_information():
    return {
        "message": f"{SERVICE_NAME} - hierarchical task tracking",
        "version": tracing.SERVICE_VERSION,
        "environment": settings.ENVIRONMENT,
        "status": "operational",
        "trace_id": tracing.get_current_trace_id(),
        "endpoints": {
            "health": "/health",
            "metrics": "/metrics",
            "authentication": "/api/v1/auth",
            "users": "/api/v1/users",
            "tasks": "/api/v1/tasks",
            "categories": "/api/v1/tasks/categories",
            "documentation": "/docs" if settings.ENVIRONMENT == "development" else None
        },
        "timestamp": time.time()
    }


tracing.info(f"{SERVICE_NAME} initialized")
