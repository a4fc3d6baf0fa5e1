from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel

from cinestream.catalog import Catalog, get_catalog
from cinestream.config import ProxySettings, get_settings
from cinestream.core.stream_proxy import (
    NotFoundError,
    ResolutionSource,
    StreamRequest,
    ValidationError,
    require_allowed_host,
    resolve,
    stream,
)
from cinestream.rate_limit import limiter, proxy_rate_limit

router = APIRouter(prefix="/api")


class ResolveRequest(BaseModel):
    url: Optional[str] = None


class ResolveResponse(BaseModel):
    url: str
    resolved: bool
    source: ResolutionSource


async def _proxy(request: Request, target_url: str, settings: ProxySettings) -> Response:
    """
    Resolve, check the allow-list, then stream. Nothing is written to the
    client until all three have succeeded up to the upstream headers.
    """
    location = await resolve(target_url, settings)
    require_allowed_host(location.url, settings)
    return await stream(
        StreamRequest(
            url=location.url,
            range_header=request.headers.get("range"),
            timeout=settings.upstream_timeout,
        ),
        settings,
    )


@router.get("/stream")
@limiter.limit(proxy_rate_limit)
async def stream_by_url(
    request: Request,
    url: Optional[str] = None,
    settings: ProxySettings = Depends(get_settings),
):
    """
    Proxy an explicit media URL (also the target of rewritten playlist links).
    """
    target = (url or "").strip()
    if not target:
        raise ValidationError("Missing url query parameter")
    return await _proxy(request, target, settings)


@router.get("/stream/{item_id}")
@limiter.limit(proxy_rate_limit)
async def stream_by_id(
    request: Request,
    item_id: str,
    settings: ProxySettings = Depends(get_settings),
    catalog: Catalog = Depends(get_catalog),
):
    """
    Proxy the stored media URL of a catalogue entry.
    """
    entry = catalog.get(item_id)
    if entry is None:
        raise NotFoundError("Movie not found")
    logger.info("Streaming catalogue item {} ({})", entry.id, entry.title)
    return await _proxy(request, entry.remote_url, settings)


@router.post("/resolve", response_model=ResolveResponse)
@limiter.limit(proxy_rate_limit)
async def resolve_link(
    request: Request,
    payload: ResolveRequest,
    settings: ProxySettings = Depends(get_settings),
):
    """
    Resolve a share link without streaming it.
    """
    target = (payload.url or "").strip()
    if not target:
        raise ValidationError("Missing url")
    location = await resolve(target, settings)
    return ResolveResponse(url=location.url, resolved=location.resolved, source=location.source)
