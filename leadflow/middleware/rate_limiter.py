# leadflow/middleware/rate_limiter.py
from __future__ import annotations

import hashlib
import time
from typing import Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from leadflow.core.config import settings
from leadflow.core.exceptions import RateLimitError
from leadflow.core.logging import get_structlog_logger
from leadflow.services.normalization import extract_client_ip
from leadflow.services.redis import get_redis_client

logger = get_structlog_logger(__name__)


class RateLimitingMiddleware(BaseHTTPMiddleware):
    """Fixed-window rate limiting backed by Redis.

    Only paths under ``path_prefix`` (public ingestion by default) are
    limited. When Redis cannot be reached requests are let through.
    """

    def __init__(
        self,
        app,
        redis_client=None,
        limit: Optional[int] = None,
        period: Optional[int] = None,
        path_prefix: Optional[str] = None,
    ):
        super().__init__(app)
        self.redis = redis_client
        self.rate_limit_requests = limit or settings.rate_limit_requests
        self.rate_limit_period = period or settings.rate_limit_period
        self.path_prefix = path_prefix or settings.rate_limit_path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_id = self._get_client_id(request)
        allowed, remaining, reset_time = await self._check_rate_limit(client_id)

        if not allowed:
            retry_after = max(reset_time - int(time.time()), 0)
            logger.warning(
                "rate_limit.exceeded",
                client_id=client_id,
                path=request.url.path,
                method=request.method,
                retry_after=retry_after,
            )
            # App exception handlers never see errors raised from middleware
            error = RateLimitError(
                message="Rate limit exceeded",
                retry_after=retry_after,
                details={
                    "limit": self.rate_limit_requests,
                    "period": self.rate_limit_period,
                    "retry_after": retry_after,
                },
            )
            return JSONResponse(
                status_code=error.status_code,
                content=error.to_dict(),
                headers={"Retry-After": str(retry_after)},
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.rate_limit_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset_time)

        return response

    def _get_client_id(self, request: Request) -> str:
        """Digest of the landing key when present, else the origin IP."""
        api_key = request.headers.get(settings.api_key_header)
        if api_key:
            digest = hashlib.sha256(api_key.encode()).hexdigest()[:16]
            return f"apikey:{digest}"

        client_ip = extract_client_ip(request.headers)
        if client_ip is None:
            client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    async def _check_rate_limit(self, client_id: str) -> Tuple[bool, int, int]:
        """Check if client has exceeded rate limit."""
        window = int(time.time() // self.rate_limit_period)
        reset_time = (window + 1) * self.rate_limit_period
        key = f"ratelimit:{client_id}:{window}"

        try:
            if self.redis is None:
                self.redis = await get_redis_client()

            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, self.rate_limit_period)
                results = await pipe.execute()
            current_count = int(results[0])

        except Exception as e:
            # Fail open
            logger.error("rate_limit.error", error=str(e), client_id=client_id[:50])
            return True, self.rate_limit_requests, reset_time

        remaining = max(0, self.rate_limit_requests - current_count)
        return current_count <= self.rate_limit_requests, remaining, reset_time
