from __future__ import annotations

import zlib
from urllib.parse import quote, urlencode, urlsplit

from cinestream.config import ProxySettings

STREAM_ENDPOINT = "/api/stream"


def build_stream_url(upstream_url: str, settings: ProxySettings) -> str:
    """
    Build the link that routes `upstream_url` back through this proxy.

    Relative (`/api/stream?url=...`) unless a public base URL is configured.
    """
    query = urlencode({"url": upstream_url})
    return f"{settings.public_base_url}{STREAM_ENDPOINT}?{query}"


def build_item_stream_path(item_id: str) -> str:
    """Path of the catalogue stream endpoint for one item."""
    return f"{STREAM_ENDPOINT}/{quote(item_id, safe='')}"


def redact(url: str) -> str:
    """
    Produce a log-safe identifier for an upstream URL (host plus a path hash).
    """
    try:
        parsed = urlsplit(url)
    except ValueError:
        return "<redacted>"
    path = parsed.path or "/"
    return f"{parsed.netloc}:{zlib.crc32(path.encode('utf-8')):08x}"
