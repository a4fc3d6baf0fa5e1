from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from cinestream._version import __version__
from cinestream.catalog import get_catalog
from cinestream.config import get_settings
from cinestream.core.stream_proxy import build_resolver


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(f"cinestream {__version__} starting")
    if settings.allow_any or not settings.allowed_hosts:
        logger.warning("Upstream allow-list is open: any host may be proxied.")
    else:
        logger.info(f"Upstream allow-list: {', '.join(settings.allowed_hosts)}")
    # pick the resolver strategy and load the catalogue once, before traffic
    resolver = build_resolver(settings)
    logger.info(f"Share resolver: {type(resolver).__name__}")
    logger.info(f"Catalogue entries: {len(get_catalog().list())}")
    logger.info(f"Upstream deadline: {settings.upstream_timeout}s")
    try:
        yield
    finally:
        logger.info("cinestream shutting down")
