from .types import (
    PlaylistLine,
    PlaylistLineKind,
    ResolutionSource,
    ResolvedLocation,
    StreamRequest,
    UpstreamResponse,
)
from .errors import (
    HostNotAllowedError,
    NotDirectMediaError,
    NotFoundError,
    ResolutionError,
    SegmentNotAllowedError,
    StreamProxyError,
    UpstreamEmptyBodyError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)
from .guard import is_host_allowed, require_allowed_host
from .deadline import deadline
from .urls import build_item_stream_path, build_stream_url
from .hls import is_hls, rewrite_playlist
from .resolver import build_resolver, is_terabox_share, resolve
from .streamer import stream

__all__ = [
    "PlaylistLine",
    "PlaylistLineKind",
    "ResolutionSource",
    "ResolvedLocation",
    "StreamRequest",
    "UpstreamResponse",
    "StreamProxyError",
    "ValidationError",
    "NotFoundError",
    "ResolutionError",
    "HostNotAllowedError",
    "NotDirectMediaError",
    "SegmentNotAllowedError",
    "UpstreamError",
    "UpstreamEmptyBodyError",
    "UpstreamTimeoutError",
    "is_host_allowed",
    "require_allowed_host",
    "deadline",
    "build_stream_url",
    "build_item_stream_path",
    "is_hls",
    "rewrite_playlist",
    "build_resolver",
    "is_terabox_share",
    "resolve",
    "stream",
]
