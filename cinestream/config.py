import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from dotenv import load_dotenv
from loguru import logger
from cinestream.utils.logger import config as configure_logger

# Load .env as early as possible so all downstream imports see the intended env
load_dotenv()

# Configure logger after env is loaded (LOG_LEVEL honored)
configure_logger()


def _as_bool(val: str | None, default: bool) -> bool:
    if val is None:
        return default
    v = val.strip().lower()
    return v in ("1", "true", "yes", "on")


def _as_positive(name: str, default: float, cast=float):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return cast(default)
    try:
        value = cast(raw.strip())
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}; defaulting to {default}.")
        return cast(default)
    if value <= 0:
        logger.warning(f"{name} must be positive (got {value}); defaulting to {default}.")
        return cast(default)
    return value


def _split_csv(raw: str) -> list[str]:
    return list(dict.fromkeys(p.strip() for p in raw.split(",") if p.strip()))


class ResolverMode(str, Enum):
    """Which share-link resolution strategy is active for this process."""

    TOKEN = "token"
    CUSTOM = "custom"
    NONE = "none"


# --- Share-link resolution ---
# Token for the hosted TeraBox resolver. Takes precedence over the custom URL.
TERABOX_NDUS = os.getenv("TERABOX_NDUS", "").strip()
# Self-hosted resolver base URL; the share link is appended as ?url=...
TERABOX_RESOLVER_URL = os.getenv("TERABOX_RESOLVER_URL", "").strip()
if TERABOX_NDUS and TERABOX_RESOLVER_URL:
    logger.warning(
        "Both TERABOX_NDUS and TERABOX_RESOLVER_URL are set; using the token resolver."
    )
logger.debug(
    f"TERABOX_NDUS={'<set>' if TERABOX_NDUS else '<none>'}, TERABOX_RESOLVER_URL={TERABOX_RESOLVER_URL or '<none>'}"
)

# --- Upstream host allow-list ---
# Comma-separated hosts; subdomains of a listed host are allowed too.
# An empty list allows every host.
ALLOWED_PROXY_HOSTS = [h.lower() for h in _split_csv(os.getenv("ALLOWED_PROXY_HOSTS", ""))]
ALLOW_PROXY_ANY = _as_bool(os.getenv("ALLOW_PROXY_ANY", None), False)
logger.debug(f"ALLOWED_PROXY_HOSTS={ALLOWED_PROXY_HOSTS}, ALLOW_PROXY_ANY={ALLOW_PROXY_ANY}")
if not ALLOW_PROXY_ANY and not ALLOWED_PROXY_HOSTS:
    logger.info("ALLOWED_PROXY_HOSTS is empty; every upstream host may be proxied.")

# --- Deadlines ---
# Applied separately to each resolver call and each upstream fetch.
UPSTREAM_TIMEOUT_SECONDS = _as_positive("UPSTREAM_TIMEOUT_SECONDS", 15.0)
logger.debug(f"UPSTREAM_TIMEOUT_SECONDS={UPSTREAM_TIMEOUT_SECONDS}")

# --- Rate limiting (fixed window, per client address) ---
RATE_LIMIT_MAX = _as_positive("RATE_LIMIT_MAX", 60, int)
RATE_LIMIT_WINDOW_SECONDS = _as_positive("RATE_LIMIT_WINDOW_SECONDS", 60, int)
logger.debug(
    f"RATE_LIMIT_MAX={RATE_LIMIT_MAX}, RATE_LIMIT_WINDOW_SECONDS={RATE_LIMIT_WINDOW_SECONDS}"
)

# Absolute base used for rewritten playlist links. Empty keeps them relative.
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").strip().rstrip("/")
logger.debug(f"PUBLIC_BASE_URL={PUBLIC_BASE_URL or '<relative>'}")

# JSON catalogue file; built-in sample entries are used when unset.
CATALOG_PATH = os.getenv("CATALOG_PATH", "").strip()
logger.debug(f"CATALOG_PATH={CATALOG_PATH or '<builtin>'}")

# --- CORS ---
CORS_ORIGINS = _split_csv(os.getenv("CORS_ORIGINS", "*"))
CORS_ALLOW_CREDENTIALS = _as_bool(os.getenv("CORS_ALLOW_CREDENTIALS", None), False)
logger.debug(f"CORS_ORIGINS={CORS_ORIGINS}, CORS_ALLOW_CREDENTIALS={CORS_ALLOW_CREDENTIALS}")

# --- Server ---
CINESTREAM_RELOAD = _as_bool(os.getenv("CINESTREAM_RELOAD", None), False)
CINESTREAM_HOST = os.getenv("CINESTREAM_HOST", "0.0.0.0").strip() or "0.0.0.0"
PORT = _as_positive("PORT", 4000, int)


@dataclass(frozen=True)
class ProxySettings:
    """
    Immutable proxy configuration, built once and handed to each component.
    """

    allowed_hosts: tuple[str, ...] = ()
    allow_any: bool = False
    resolver_token: str = ""
    resolver_url: str = ""
    upstream_timeout: float = 15.0
    public_base_url: str = ""

    @property
    def resolver_mode(self) -> ResolverMode:
        if self.resolver_token:
            return ResolverMode.TOKEN
        if self.resolver_url:
            return ResolverMode.CUSTOM
        return ResolverMode.NONE


@lru_cache(maxsize=1)
def get_settings() -> ProxySettings:
    """
    Return the process-wide settings built from the environment at startup.
    """
    settings = ProxySettings(
        allowed_hosts=tuple(ALLOWED_PROXY_HOSTS),
        allow_any=ALLOW_PROXY_ANY,
        resolver_token=TERABOX_NDUS,
        resolver_url=TERABOX_RESOLVER_URL,
        upstream_timeout=UPSTREAM_TIMEOUT_SECONDS,
        public_base_url=PUBLIC_BASE_URL,
    )
    logger.debug(f"Resolver mode: {settings.resolver_mode.value}")
    return settings
