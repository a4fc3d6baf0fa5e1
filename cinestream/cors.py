from __future__ import annotations

from fastapi import FastAPI
from loguru import logger
from starlette.middleware.cors import CORSMiddleware


def apply_cors_middleware(
    app: FastAPI,
    *,
    origins: list[str],
    allow_credentials: bool,
) -> None:
    """Let browser players on other origins call the API.

    Nothing is installed for an empty origin list. A wildcard never sends
    credentials. Range and content headers are exposed so players can seek.
    """
    if not origins:
        logger.debug("CORS disabled (no origins configured)")
        return

    is_wildcard = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if is_wildcard else origins,
        allow_credentials=False if is_wildcard else allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Accept-Ranges", "Content-Range", "Content-Length"],
    )
