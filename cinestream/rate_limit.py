from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from cinestream import config

limiter = Limiter(key_func=get_remote_address, strategy="fixed-window")


def proxy_rate_limit() -> str:
    """Limit string for the proxy endpoints, read from config on every request."""
    return f"{config.RATE_LIMIT_MAX} per {config.RATE_LIMIT_WINDOW_SECONDS} second"


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(
        "Rate limit hit by {} on {}", get_remote_address(request), request.url.path
    )
    return JSONResponse(status_code=429, content={"detail": "Too many requests"})
