"""Rate limiting for the public booking endpoints.

Uses slowapi; storage defaults to in-process memory and can point at Redis via
RATE_LIMIT_STORAGE_URI when several workers must share counters.
"""

from typing import Callable

from fastapi import Request, Response
from libs.common.config import get_settings
from libs.common.responses import fail
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse


def client_key(request: Request) -> str:
    """Client address, preferring the first hop of X-Forwarded-For behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or get_remote_address(request)


def _build_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=client_key,
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = _build_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    return JSONResponse(
        status_code=429,
        content=fail(
            f"Too many booking requests ({exc.detail}). Try again shortly.",
            "RATE_LIMIT_EXCEEDED",
        ),
        headers={"Retry-After": "60"},
    )


def booking_limit(func: Callable) -> Callable:
    """Apply BOOKING_RATE_LIMIT per client to a book/unbook handler."""
    return limiter.limit(get_settings().BOOKING_RATE_LIMIT)(func)
