import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from cinestream.config import ProxySettings, get_settings  # noqa: E402


@pytest.fixture
def app(monkeypatch):
    """
    The cinestream app with fresh rate-limit counters and default settings
    (open allow-list, no resolver, short deadline).
    """
    monkeypatch.delenv("CATALOG_PATH", raising=False)
    from cinestream.main import app as fastapi_app
    from cinestream.rate_limit import limiter

    limiter.reset()
    settings = ProxySettings(upstream_timeout=5.0)
    fastapi_app.dependency_overrides[get_settings] = lambda: settings
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def use_settings(app):
    """
    Replace the injected ProxySettings for the current test.
    """

    def _apply(**kwargs) -> ProxySettings:
        settings = ProxySettings(**kwargs)
        app.dependency_overrides[get_settings] = lambda: settings
        return settings

    return _apply


@pytest.fixture
def mount_upstream(monkeypatch):
    """
    Route every outbound httpx call (resolver and streamer) to an in-memory
    ASGI app, whatever host the URL names.
    """

    def _mount(upstream_app):
        def _factory():
            return httpx.AsyncClient(
                transport=httpx.ASGITransport(app=upstream_app),
                follow_redirects=True,
                trust_env=False,
                headers={"Accept-Encoding": "identity"},
            )

        monkeypatch.setattr("cinestream.utils.http_client.build_async_client", _factory)

    return _mount
