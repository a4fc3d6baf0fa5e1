from __future__ import annotations

from typing import Optional


class StreamProxyError(Exception):
    """Base class for proxy failures that map onto an HTTP status."""

    status_code = 500
    default_detail = "Failed to stream video"

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(StreamProxyError):
    status_code = 400
    default_detail = "Invalid request"


class NotFoundError(StreamProxyError):
    status_code = 404
    default_detail = "Not found"


class ResolutionError(StreamProxyError):
    """Resolver misconfigured, unreachable, or returned no usable link."""

    status_code = 400
    default_detail = "Failed to resolve link"


class HostNotAllowedError(StreamProxyError):
    status_code = 400
    default_detail = "Resolved host not allowed by proxy"


class NotDirectMediaError(StreamProxyError):
    """Upstream served an HTML page (a share or landing page), not media."""

    status_code = 400
    default_detail = "Provided link is not a direct video file URL. Use a direct MP4/HLS URL."


class SegmentNotAllowedError(StreamProxyError):
    """A playlist referenced a disallowed host; the whole manifest is rejected."""

    status_code = 400
    default_detail = "Segment host not allowed by proxy"


class UpstreamError(StreamProxyError):
    status_code = 502
    default_detail = "Failed to stream video"

    def __init__(
        self, detail: Optional[str] = None, *, upstream_status: Optional[int] = None
    ) -> None:
        self.upstream_status = upstream_status
        super().__init__(detail)


class UpstreamEmptyBodyError(UpstreamError):
    default_detail = "Upstream response has no body"


class UpstreamTimeoutError(StreamProxyError):
    """A resolver call or upstream fetch ran past its deadline."""

    status_code = 504
    default_detail = "Upstream request timed out"
