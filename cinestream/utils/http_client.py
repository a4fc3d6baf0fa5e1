from __future__ import annotations

import httpx
from loguru import logger

from cinestream._version import __version__

# Media must arrive exactly as stored so byte ranges and Content-Length stay valid.
_DEFAULT_HEADERS = {
    "Accept-Encoding": "identity",
    "User-Agent": f"cinestream/{__version__}",
}


def build_async_client() -> httpx.AsyncClient:
    """
    Build an AsyncClient for resolver calls and upstream streaming.

    Redirects are followed and environment proxies are ignored. The overall
    deadline for each operation is enforced separately by the caller.
    """
    logger.trace("Building upstream AsyncClient")
    timeout = httpx.Timeout(30.0, connect=10.0, read=60.0, write=30.0, pool=30.0)
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        trust_env=False,
        headers=_DEFAULT_HEADERS,
    )
