from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional, Union
from urllib.parse import quote, urlencode

import httpx
from loguru import logger

from cinestream.config import ProxySettings, ResolverMode
from cinestream.utils import http_client

from .deadline import deadline
from .errors import ResolutionError
from .guard import host_of
from .types import ResolutionSource, ResolvedLocation
from .urls import redact

TOKEN_RESOLVER_ENDPOINT = "https://nord.teraboxfast.com/"

_SHARE_HOST_MARKERS = ("terabox",)
_TOP_LEVEL_FIELDS = ("direct_link", "link", "url")
_NESTED_FIELDS = ("direct_link", "url")

ShareLinkPredicate = Callable[[str], bool]


def is_terabox_share(url: str) -> bool:
    """
    Return whether `url` is a TeraBox share page that needs resolving.
    """
    host = host_of(url)
    if not host:
        return False
    return any(marker in host for marker in _SHARE_HOST_MARKERS)


def _first_link(payload: Any, fields: tuple[str, ...]) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for field in fields:
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class TokenResolver:
    """Hosted resolver authenticated with an `ndus` token."""

    token: str
    endpoint: str = TOKEN_RESOLVER_ENDPOINT
    source = ResolutionSource.TOKEN

    def request_url(self, share_url: str) -> str:
        return f"{self.endpoint}?{urlencode({'ndus': self.token, 'url': share_url})}"

    def extract(self, payload: Any) -> Optional[str]:
        return _first_link(payload, _TOP_LEVEL_FIELDS)


@dataclass(frozen=True)
class CustomResolver:
    """Self-hosted resolver; its response may nest the link under `data`."""

    base_url: str
    source = ResolutionSource.CUSTOM

    def request_url(self, share_url: str) -> str:
        joiner = "&" if "?" in self.base_url else "?"
        return f"{self.base_url}{joiner}url={quote(share_url, safe='')}"

    def extract(self, payload: Any) -> Optional[str]:
        link = _first_link(payload, _TOP_LEVEL_FIELDS)
        if link:
            return link
        if isinstance(payload, dict):
            return _first_link(payload.get("data"), _NESTED_FIELDS)
        return None


@dataclass(frozen=True)
class UnconfiguredResolver:
    pass


ShareResolver = Union[TokenResolver, CustomResolver, UnconfiguredResolver]


@lru_cache(maxsize=8)
def build_resolver(settings: ProxySettings) -> ShareResolver:
    """
    Select the resolution strategy for these settings. Cached, so the choice
    is made once per settings value.
    """
    mode = settings.resolver_mode
    logger.debug("Selecting share resolver: {}", mode.value)
    if mode is ResolverMode.TOKEN:
        return TokenResolver(token=settings.resolver_token)
    if mode is ResolverMode.CUSTOM:
        return CustomResolver(base_url=settings.resolver_url)
    return UnconfiguredResolver()


async def resolve(
    input_url: str,
    settings: ProxySettings,
    *,
    timeout: Optional[float] = None,
    is_share_link: ShareLinkPredicate = is_terabox_share,
) -> ResolvedLocation:
    """
    Turn `input_url` into a directly fetchable URL.

    URLs that are not share links are returned as-is without any network call.
    Share links go through the configured resolver under a deadline.

    Raises:
        ResolutionError: no resolver configured, resolver unreachable, non-2xx
            reply, unreadable JSON, or no link field in the reply.
        UpstreamTimeoutError: the resolver call exceeded its deadline.
    """
    if not is_share_link(input_url):
        logger.trace("Not a share link, using as-is: {}", redact(input_url))
        return ResolvedLocation(url=input_url, resolved=False, source=ResolutionSource.DIRECT)

    strategy = build_resolver(settings)
    if isinstance(strategy, UnconfiguredResolver):
        logger.warning("Share link received but no resolver is configured.")
        raise ResolutionError("no resolver configured")

    request_url = strategy.request_url(input_url)
    logger.info("Resolving share link {} via {}", redact(input_url), strategy.source.value)
    async with http_client.build_async_client() as client:
        try:
            async with deadline(
                timeout if timeout is not None else settings.upstream_timeout,
                operation="link resolution",
            ):
                response = await client.get(request_url)
        except httpx.RequestError as exc:
            logger.error("Resolver request failed: {}", exc)
            raise ResolutionError(f"Resolver unreachable: {exc.__class__.__name__}") from exc

    if not response.is_success:
        logger.error("Resolver replied with status {}", response.status_code)
        raise ResolutionError(f"Resolver error ({response.status_code})")
    try:
        payload = response.json()
    except ValueError as exc:
        raise ResolutionError("Resolver returned invalid JSON") from exc

    direct_link = strategy.extract(payload)
    if not direct_link:
        raise ResolutionError("Resolver response missing direct link")
    logger.success("Resolved share link {} -> {}", redact(input_url), redact(direct_link))
    return ResolvedLocation(url=direct_link, resolved=True, source=strategy.source)
