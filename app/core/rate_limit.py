"""Rate limiting middleware for the ``/api`` surface.

The limiter runs before routing, so unknown paths, wrong methods and
multipart bodies are counted (and refused) without reaching a handler.
The limiter instance lives on the application context, not in this module.

Rate limiting strategy:
- Sliding window per client IP and request path (``ip:path``).
- Client IP is the first X-Forwarded-For entry, then X-Real-IP, then the
  socket peer.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from app.adapters.rate_limit.base import RateLimitResult
from app.core.config import settings
from app.core.context import get_app_context

logger = logging.getLogger(__name__)

RATE_LIMITED_PREFIX = "/api/"


def get_client_ip(request: Request) -> str:
    """Best-effort client IP for rate limiting.

    Args:
        request: FastAPI request.

    Returns:
        str: Client IP, or ``"unknown"``.
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


def build_rate_limit_key(request: Request) -> str:
    """Build the limiter key for the current request (``ip:path``)."""

    return f"{get_client_ip(request)}:{request.url.path}"


def is_rate_limited_path(path: str) -> bool:
    return path.startswith(RATE_LIMITED_PREFIX)


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client IPs."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _too_many_requests(request: Request, key: str, result: RateLimitResult) -> JSONResponse:
    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": _hash_limiter_key(key),
            "path": request.url.path,
            "method": request.method,
            "limit": result.limit,
            "window_s": settings.app.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": "Too many requests"},
        headers=headers or None,
    )


async def rate_limit_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Record ``/api/*`` requests against the caller's window.

    If the caller already used the whole budget, answers 429 immediately;
    requests are never queued or delayed. Other paths pass through untouched.
    """

    if not settings.app.rate_limit_enabled or not is_rate_limited_path(request.url.path):
        return await call_next(request)

    limiter = get_app_context(request).rate_limiter
    key = build_rate_limit_key(request)

    result = limiter.consume(key)
    if not result.allowed:
        return _too_many_requests(request, key, result)

    logger.debug(
        "rate_limit.allowed",
        extra={
            "key_hash": _hash_limiter_key(key),
            "limit": result.limit,
            "remaining": result.remaining,
        },
    )
    return await call_next(request)
