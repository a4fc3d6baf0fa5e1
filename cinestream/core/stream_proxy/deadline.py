from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import anyio
import httpx
from loguru import logger

from .errors import UpstreamTimeoutError


@asynccontextmanager
async def deadline(seconds: float, *, operation: str) -> AsyncIterator[None]:
    """
    Bound the enclosed network work to `seconds`.

    On expiry the in-flight call is cancelled and UpstreamTimeoutError is raised.
    httpx's own timeouts are reported the same way. The cancel scope is left on
    every exit path, so nothing outlives the request.
    """
    logger.trace("Deadline {}s armed for {}", seconds, operation)
    try:
        with anyio.fail_after(seconds):
            yield
    except (TimeoutError, httpx.TimeoutException) as exc:
        logger.warning("{} exceeded its {}s deadline", operation, seconds)
        raise UpstreamTimeoutError() from exc
