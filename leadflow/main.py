# leadflow/main.py
from __future__ import annotations

import uuid
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from leadflow import __version__
from leadflow.core.config import settings
from leadflow.core.exceptions import APIError, BaseAPIException, ValidationError
from leadflow.core.logging import configure_structlog, get_structlog_logger
from leadflow.db.session import dispose_engine
from leadflow.middleware.logging import LoggingMiddleware
from leadflow.middleware.rate_limiter import RateLimitingMiddleware
from leadflow.middleware.request_id import RequestIdMiddleware
from leadflow.routes import (
    balance_router,
    dashboard_router,
    expenses_router,
    health_router,
    landings_router,
    leads_router,
    public_router,
)
from leadflow.schemas.common import field_errors
from leadflow.services.redis import close_redis_pool, init_redis_pool


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info("application.starting", environment=settings.environment)

    if settings.rate_limiting_active:
        try:
            await init_redis_pool()
        except BaseAPIException as e:
            # The limiter fails open; ingestion keeps working without Redis
            logger.error("redis.unavailable_at_startup", error=e.message)

    if settings.sentry_dsn and not settings.is_testing:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            release=__version__,
            integrations=[
                AsyncioIntegration(),
                FastApiIntegration(),
                StarletteIntegration(),
            ],
            traces_sample_rate=1.0 if settings.is_development else 0.1,
            send_default_pii=False,
        )
        logger.info("sentry.initialized")

    logger.info("application.started")
    yield

    logger.info("application.shutting_down")
    if settings.rate_limiting_active:
        await close_redis_pool()
    await dispose_engine()
    logger.info("application.shutdown_complete")


# Configure logging before creating app
configure_structlog()
logger = get_structlog_logger(__name__)

app = FastAPI(
    title="LeadFlow API",
    version=__version__,
    description="Lead capture, sales pipeline and commission tracking",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

# Last added runs first: CORS, trusted hosts, request id, logging, rate limiting
app.add_middleware(GZipMiddleware, minimum_size=1000)
if settings.rate_limiting_active:
    app.add_middleware(RateLimitingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.hosts())
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins(),
    allow_credentials=True,
    allow_methods=settings.methods(),
    allow_headers=settings.allowed_headers.split(","),
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


@app.exception_handler(BaseAPIException)
async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Render domain errors as ``{success: false, code, message, details}``."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "api.exception",
        status_code=exc.status_code,
        code=exc.code,
        error=exc.message,
        cause=repr(exc.__cause__) if exc.__cause__ else None,
        path=request.url.path,
        method=request.method,
    )

    headers = None
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        headers = {"Retry-After": str(retry_after)}

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation failures use the same 400 body as domain validation."""
    error = ValidationError(message="Request validation failed", errors=field_errors(exc.errors()))

    logger.warning(
        "validation.error",
        path=request.url.path,
        method=request.method,
        errors=error.errors,
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    error_id = f"err_{uuid.uuid4().hex[:12]}"

    logger.error(
        "unhandled.exception",
        error_id=error_id,
        error_type=type(exc).__name__,
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )

    if settings.is_development:
        error = APIError(message=f"Internal server error: {exc}", details={"error_id": error_id})
    else:
        error = APIError(message="Internal server error", details={"error_id": error_id})

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error.to_dict(),
        headers={"X-Error-ID": error_id},
    )


app.include_router(health_router, prefix=settings.api_prefix)
app.include_router(public_router, prefix=settings.api_prefix)
app.include_router(leads_router, prefix=settings.api_prefix)
app.include_router(landings_router, prefix=settings.api_prefix)
app.include_router(expenses_router, prefix=settings.api_prefix)
app.include_router(balance_router, prefix=settings.api_prefix)
app.include_router(dashboard_router, prefix=settings.api_prefix)

if not settings.is_testing:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "LeadFlow API",
        "version": app.version,
        "environment": settings.environment,
        "docs": "/docs" if settings.is_development else None,
        "health": f"{settings.api_prefix}/health",
    }


logger.info("application.configured", environment=settings.environment)
