from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from loguru import logger

from cinestream.config import ProxySettings

from .errors import HostNotAllowedError


def host_of(url: str) -> Optional[str]:
    """
    Return the lower-cased hostname of `url`, or None when it cannot be parsed.
    """
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    return host or None


def _matches(host: str, allowed: str) -> bool:
    allowed = allowed.strip().lstrip(".").lower()
    if not allowed:
        return False
    return host == allowed or host.endswith(f".{allowed}")


def is_host_allowed(
    target_url: str, settings: ProxySettings, base_host: Optional[str] = None
) -> bool:
    """
    Decide whether `target_url` may be proxied.

    Every host is allowed in allow-any mode or when no allow-list is configured.
    Otherwise the host must equal `base_host` (the host of the manifest or
    request being served), equal a configured host, or be a subdomain of one.
    URLs without a parsable host are rejected.
    """
    if settings.allow_any or not settings.allowed_hosts:
        return True
    host = host_of(target_url)
    if host is None:
        return False
    if base_host and host == base_host.lower():
        return True
    return any(_matches(host, allowed) for allowed in settings.allowed_hosts)


def require_allowed_host(
    target_url: str,
    settings: ProxySettings,
    base_host: Optional[str] = None,
    *,
    detail: Optional[str] = None,
) -> None:
    """
    Raise HostNotAllowedError unless `target_url` passes the allow-list.
    """
    if is_host_allowed(target_url, settings, base_host):
        return
    logger.warning("Rejected upstream host {}", host_of(target_url) or "<malformed>")
    raise HostNotAllowedError(detail)
