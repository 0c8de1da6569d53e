# leadflow/routes/health.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow import __version__
from leadflow.core.config import settings
from leadflow.core.logging import get_structlog_logger
from leadflow.db.session import get_session
from leadflow.services.redis import health_check as redis_health_check

logger = get_structlog_logger(__name__)

router = APIRouter(tags=["health"])

_started_at = time.monotonic()


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    environment: str
    version: str
    timestamp: str
    uptime: float
    checks: Dict[str, Dict[str, Any]]


async def check_database(session: AsyncSession) -> Dict[str, Any]:
    """Check database connectivity."""
    start_time = time.perf_counter()
    try:
        result = await session.execute(text("SELECT 1"))
        ok = result.scalar() == 1
    except Exception as e:
        logger.error("health.database_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy" if ok else "unhealthy",
        "dialect": session.bind.dialect.name if session.bind is not None else "unknown",
        "response_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
    }


async def check_redis() -> Dict[str, Any]:
    """Redis only backs the ingestion rate limiter."""
    if not settings.rate_limiting_active:
        return {"status": "disabled"}

    result = await redis_health_check()
    return {key: value for key, value in result.items() if value is not None}


@router.get("/health", response_model=HealthCheckResponse, status_code=status.HTTP_200_OK)
async def health_check(session: AsyncSession = Depends(get_session)):
    checks = {
        "database": await check_database(session),
        "redis": await check_redis(),
    }

    if checks["database"]["status"] != "healthy":
        overall_status = "unhealthy"
    elif checks["redis"]["status"] not in ("healthy", "disabled"):
        # Rate limiting fails open, so Redis trouble only degrades the service
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    if overall_status != "healthy":
        logger.warning("health.check", status=overall_status, checks=checks)

    return HealthCheckResponse(
        status=overall_status,
        service="leadflow_api",
        environment=settings.environment,
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=time.monotonic() - _started_at,
        checks=checks,
    )


@router.get("/health/live", status_code=status.HTTP_200_OK)
async def liveness_probe():
    """Simple liveness probe for containers."""
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
