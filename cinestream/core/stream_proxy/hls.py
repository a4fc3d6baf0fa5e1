from __future__ import annotations

from urllib.parse import urljoin, urlsplit

from loguru import logger

from cinestream.config import ProxySettings

from .errors import SegmentNotAllowedError
from .guard import host_of, is_host_allowed
from .types import PlaylistLine, PlaylistLineKind
from .urls import build_stream_url, redact

MANIFEST_MEDIA_TYPE = "application/vnd.apple.mpegurl"
_HLS_CONTENT_TYPES = {
    MANIFEST_MEDIA_TYPE,
    "application/x-mpegurl",
    "audio/mpegurl",
}
_LINE_SEPARATOR = "\n"


def is_hls(url: str, content_type: str) -> bool:
    """
    Detect an HLS manifest by content type or by a `.m3u8` path suffix.
    """
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type in _HLS_CONTENT_TYPES:
        return True
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    return path.endswith(".m3u8")


def parse_playlist(playlist_text: str) -> list[PlaylistLine]:
    return [PlaylistLine.parse(raw) for raw in playlist_text.split(_LINE_SEPARATOR)]


def rewrite_playlist(
    playlist_text: str, *, base_url: str, settings: ProxySettings
) -> str:
    """
    Route every URI line of an HLS playlist back through the stream endpoint.

    Blank lines and `#` lines (tags and comments) are kept byte for byte. Each
    URI line is resolved against `base_url`, checked against the allow-list
    with the manifest's own host as base host, and replaced with a
    `/api/stream?url=...` link. Master playlists need no special handling:
    variant playlists are rewritten like segments and re-checked when fetched.

    Raises:
        SegmentNotAllowedError: if any URI points at a disallowed host. No
            partial playlist is produced.
    """
    logger.debug("Rewriting HLS playlist from {}", redact(base_url))
    base_host = host_of(base_url)
    out_lines: list[str] = []
    rewritten = 0
    for line in parse_playlist(playlist_text):
        if line.kind is not PlaylistLineKind.URI:
            out_lines.append(line.raw)
            continue
        absolute = urljoin(base_url, line.value)
        if not is_host_allowed(absolute, settings, base_host):
            logger.warning(
                "Playlist {} references disallowed host {}",
                redact(base_url),
                host_of(absolute) or "<malformed>",
            )
            raise SegmentNotAllowedError()
        proxied = build_stream_url(absolute, settings)
        # keep CRLF playlists CRLF
        if line.raw.endswith("\r"):
            proxied += "\r"
        out_lines.append(proxied)
        rewritten += 1

    logger.debug("Rewrote {} URI lines of {}", rewritten, len(out_lines))
    return _LINE_SEPARATOR.join(out_lines)
