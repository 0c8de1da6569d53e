# leadflow/middleware/__init__.py
"""
ASGI middleware: request ids, request/response logging and rate limiting.
"""

from leadflow.middleware.logging import LoggingMiddleware
from leadflow.middleware.rate_limiter import RateLimitingMiddleware
from leadflow.middleware.request_id import RequestIdMiddleware

__all__ = [
    "LoggingMiddleware",
    "RateLimitingMiddleware",
    "RequestIdMiddleware",
]
