from __future__ import annotations

from typing import AsyncIterator, Optional
from urllib.parse import urlsplit

import anyio
import httpx
from fastapi.responses import Response, StreamingResponse
from loguru import logger
from starlette.background import BackgroundTask

from cinestream.config import ProxySettings
from cinestream.utils import http_client

from .deadline import deadline
from .errors import (
    NotDirectMediaError,
    UpstreamEmptyBodyError,
    UpstreamError,
    ValidationError,
)
from .guard import host_of, require_allowed_host
from .hls import MANIFEST_MEDIA_TYPE, is_hls, rewrite_playlist
from .types import StreamRequest, UpstreamResponse
from .urls import redact

_STREAM_CHUNK_SIZE = 64 * 1024
_DEFAULT_MEDIA_TYPE = "application/octet-stream"
_RANGE_NOT_SATISFIABLE = 416


def _validate_target(url: str) -> None:
    """
    Ensure the upstream URL is an absolute http(s) URL.
    """
    try:
        parsed = urlsplit(url)
    except ValueError as exc:
        raise ValidationError("invalid upstream url") from exc
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValidationError("invalid upstream url scheme")


async def _close(response: Optional[httpx.Response], client: httpx.AsyncClient) -> None:
    # shielded: runs while the request task is being cancelled on disconnect
    with anyio.CancelScope(shield=True):
        if response is not None:
            await response.aclose()
        await client.aclose()


def _relay_body(response: httpx.Response, client: httpx.AsyncClient) -> AsyncIterator[bytes]:
    """
    Create an async generator that relays upstream bytes unmodified and closes
    the upstream response and client however the relay ends.
    """

    async def _gen():
        sent = 0
        try:
            async for chunk in response.aiter_raw(_STREAM_CHUNK_SIZE):
                sent += len(chunk)
                yield chunk
        except httpx.HTTPError as exc:
            # headers are already out; aborting the connection is all that is left
            logger.error("Upstream relay broke after {} bytes: {}", sent, exc)
            raise
        finally:
            await _close(response, client)
            logger.trace("Relay finished ({} bytes)", sent)

    return _gen()


def _check_upstream(upstream: UpstreamResponse, target_url: str, settings: ProxySettings) -> None:
    if upstream.url != target_url:
        # redirects are untrusted: the final hop must pass the allow-list too
        require_allowed_host(
            upstream.url,
            settings,
            host_of(target_url),
            detail="Redirect target host not allowed by proxy",
        )
    if upstream.status_code == _RANGE_NOT_SATISFIABLE:
        return
    if upstream.status_code < 200 or upstream.status_code >= 300:
        logger.error(
            "Upstream {} answered {}", redact(upstream.url), upstream.status_code
        )
        raise UpstreamError(
            f"Upstream responded with status {upstream.status_code}",
            upstream_status=upstream.status_code,
        )
    if "text/html" in upstream.content_type.lower():
        raise NotDirectMediaError()


def _is_manifest(upstream: UpstreamResponse, target_url: str) -> bool:
    # either the requested or the final URL may carry the .m3u8 suffix
    if upstream.status_code == _RANGE_NOT_SATISFIABLE:
        return False
    return is_hls(target_url, upstream.content_type) or is_hls(
        upstream.url, upstream.content_type
    )


def _range_not_satisfiable(upstream: UpstreamResponse) -> Response:
    headers = {"Accept-Ranges": "bytes"}
    if upstream.content_range:
        headers["Content-Range"] = upstream.content_range
    logger.info("Upstream {} rejected the requested range", redact(upstream.url))
    return Response(status_code=_RANGE_NOT_SATISFIABLE, headers=headers)


def _media_response(
    upstream: UpstreamResponse, range_header: Optional[str], client: httpx.AsyncClient
) -> StreamingResponse:
    headers = {"Accept-Ranges": "bytes"}
    if range_header and upstream.content_range:
        status_code = 206
        headers["Content-Range"] = upstream.content_range
    else:
        status_code = 200
    if upstream.content_length:
        headers["Content-Length"] = upstream.content_length
    logger.debug(
        "Relaying {} as {} (range={})",
        redact(upstream.url),
        status_code,
        range_header or "-",
    )
    return StreamingResponse(
        _relay_body(upstream.raw, client),
        status_code=status_code,
        headers=headers,
        media_type=upstream.content_type or _DEFAULT_MEDIA_TYPE,
        # runs after the relay ends or the client disconnects mid-body
        background=BackgroundTask(_close, upstream.raw, client),
    )


def _playlist_response(
    body: bytes, upstream: UpstreamResponse, settings: ProxySettings
) -> Response:
    charset = upstream.raw.encoding or "utf-8"
    playlist_text = body.decode(charset, errors="replace")
    rewritten = rewrite_playlist(playlist_text, base_url=upstream.url, settings=settings)
    out_bytes = rewritten.encode("utf-8")
    logger.success("Rewrote HLS playlist ({} bytes)", len(out_bytes))
    return Response(
        content=out_bytes,
        status_code=200,
        media_type=MANIFEST_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache"},
    )


async def stream(request: StreamRequest, settings: ProxySettings) -> Response:
    """
    Fetch `request.url` and build the response to relay it to the client.

    The fetch, up to the upstream headers (and the whole body for playlists),
    runs under the request deadline. HLS playlists come back rewritten in
    full; anything else is returned as a StreamingResponse that copies the
    body chunk by chunk and keeps the upstream connection open until the
    client has it all or goes away. A target is treated as a playlist when
    either the requested or the final URL ends in `.m3u8`, or the content
    type says so. An upstream 416 is passed through with its Content-Range.

    Raises:
        ValidationError: target is not an absolute http(s) URL.
        HostNotAllowedError: a redirect led to a disallowed host.
        NotDirectMediaError: upstream served HTML.
        SegmentNotAllowedError: the playlist references a disallowed host.
        UpstreamEmptyBodyError: upstream answered without a body.
        UpstreamError: network failure or non-2xx upstream status.
        UpstreamTimeoutError: the deadline expired.
    """
    _validate_target(request.url)
    upstream_headers: dict[str, str] = {}
    if request.range_header:
        upstream_headers["Range"] = request.range_header

    logger.info("Proxying {} (range={})", redact(request.url), request.range_header or "-")
    client = http_client.build_async_client()
    response: Optional[httpx.Response] = None
    handed_off = False
    try:
        playlist_body: Optional[bytes] = None
        async with deadline(request.timeout, operation="media fetch"):
            upstream_request = client.build_request("GET", request.url, headers=upstream_headers)
            response = await client.send(upstream_request, stream=True)
            upstream = UpstreamResponse.from_httpx(response)
            _check_upstream(upstream, request.url, settings)
            if _is_manifest(upstream, request.url):
                playlist_body = await response.aread()

        if upstream.status_code == _RANGE_NOT_SATISFIABLE:
            return _range_not_satisfiable(upstream)
        if playlist_body is not None:
            return _playlist_response(playlist_body, upstream, settings)
        if not upstream.has_body:
            raise UpstreamEmptyBodyError()

        streaming = _media_response(upstream, request.range_header, client)
        handed_off = True
        return streaming
    except httpx.InvalidURL as exc:
        raise ValidationError("invalid upstream url") from exc
    except httpx.RequestError as exc:
        logger.error("Upstream request to {} failed: {}", redact(request.url), exc)
        raise UpstreamError(f"Failed to reach upstream: {exc.__class__.__name__}") from exc
    finally:
        if not handed_off:
            await _close(response, client)
