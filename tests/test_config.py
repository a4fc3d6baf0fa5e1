import importlib.util
from pathlib import Path

import cinestream.config as live_config

CONFIG_PATH = Path(live_config.__file__)


def _load_config(monkeypatch, **env):
    """
    Execute cinestream/config.py as a throwaway module with the given env, so
    the live module (and everything bound to it) stays untouched.
    """
    for key in (
        "TERABOX_NDUS",
        "TERABOX_RESOLVER_URL",
        "ALLOWED_PROXY_HOSTS",
        "ALLOW_PROXY_ANY",
        "UPSTREAM_TIMEOUT_SECONDS",
        "RATE_LIMIT_MAX",
        "PORT",
    ):
        monkeypatch.delenv(key, raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    spec = importlib.util.spec_from_file_location("cinestream_config_under_test", CONFIG_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_allowed_hosts_parsing(monkeypatch):
    cfg = _load_config(monkeypatch, ALLOWED_PROXY_HOSTS="  CDN.example.com , , media.test,cdn.example.com ")

    assert cfg.ALLOWED_PROXY_HOSTS == ["cdn.example.com", "media.test"]
    assert cfg.get_settings().allowed_hosts == ("cdn.example.com", "media.test")


def test_defaults(monkeypatch):
    cfg = _load_config(monkeypatch)
    settings = cfg.get_settings()

    assert settings.allow_any is False
    assert settings.upstream_timeout == 15.0
    assert settings.resolver_mode is cfg.ResolverMode.NONE
    assert cfg.RATE_LIMIT_MAX == 60
    assert cfg.PORT == 4000


def test_allow_any_flag(monkeypatch):
    cfg = _load_config(monkeypatch, ALLOW_PROXY_ANY="true")
    assert cfg.get_settings().allow_any is True


def test_resolver_mode_selection(monkeypatch):
    token = _load_config(monkeypatch, TERABOX_NDUS="abc", TERABOX_RESOLVER_URL="https://r")
    custom = _load_config(monkeypatch, TERABOX_RESOLVER_URL="https://r")

    assert token.get_settings().resolver_mode is token.ResolverMode.TOKEN
    assert custom.get_settings().resolver_mode is custom.ResolverMode.CUSTOM


def test_invalid_numbers_fall_back_to_defaults(monkeypatch):
    cfg = _load_config(monkeypatch, UPSTREAM_TIMEOUT_SECONDS="soon", RATE_LIMIT_MAX="0", PORT="8080")

    assert cfg.UPSTREAM_TIMEOUT_SECONDS == 15.0
    assert cfg.RATE_LIMIT_MAX == 60
    assert cfg.PORT == 8080


def test_settings_are_immutable():
    import dataclasses

    import pytest

    settings = live_config.ProxySettings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.allow_any = True  # type: ignore[misc]
