from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx


class ResolutionSource(str, Enum):
    """Where a playable URL came from."""

    DIRECT = "direct"
    TOKEN = "teraboxfast"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ResolvedLocation:
    """
    Outcome of share-link resolution. Must pass the host guard before use.
    """

    url: str
    resolved: bool
    source: ResolutionSource

    def as_dict(self) -> dict[str, object]:
        return {"url": self.url, "resolved": self.resolved, "source": self.source.value}


@dataclass(frozen=True)
class StreamRequest:
    """
    One inbound proxy request: the target URL, the client's Range header, and
    the deadline in seconds for the upstream fetch.
    """

    url: str
    range_header: Optional[str]
    timeout: float


@dataclass
class UpstreamResponse:
    """
    The upstream headers the streamer needs, plus the live httpx response
    whose body has not been consumed yet.

    `has_body` is False for 204/205/304 and also for an explicit
    `Content-Length: 0`, so a zero-byte "media file" is reported as an
    empty upstream (502) rather than relayed as an empty 200.
    """

    url: str
    status_code: int
    content_type: str
    content_length: Optional[str]
    content_range: Optional[str]
    has_body: bool
    raw: httpx.Response

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "UpstreamResponse":
        headers = response.headers
        content_length = headers.get("content-length")
        has_body = response.status_code not in (204, 205, 304) and content_length != "0"
        return cls(
            url=str(response.url),
            status_code=response.status_code,
            content_type=headers.get("content-type", ""),
            content_length=content_length,
            content_range=headers.get("content-range"),
            has_body=has_body,
            raw=response,
        )


class PlaylistLineKind(str, Enum):
    BLANK = "blank"
    DIRECTIVE = "directive"
    URI = "uri"


@dataclass(frozen=True)
class PlaylistLine:
    """A single manifest line, kept verbatim alongside its classification."""

    raw: str
    kind: PlaylistLineKind

    @property
    def value(self) -> str:
        return self.raw.strip()

    @classmethod
    def parse(cls, raw: str) -> "PlaylistLine":
        stripped = raw.strip()
        if not stripped:
            return cls(raw, PlaylistLineKind.BLANK)
        if stripped.startswith("#"):
            return cls(raw, PlaylistLineKind.DIRECTIVE)
        return cls(raw, PlaylistLineKind.URI)
