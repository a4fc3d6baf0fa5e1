import pytest

from cinestream.config import ProxySettings
from cinestream.core.stream_proxy import HostNotAllowedError
from cinestream.core.stream_proxy.guard import (
    host_of,
    is_host_allowed,
    require_allowed_host,
)

CDN_ONLY = ProxySettings(allowed_hosts=("cdn.example.com",))


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://cdn.example.com/x", True),
        ("https://evil.com/x", False),
        ("https://sub.cdn.example.com/x", True),
        ("https://a.b.cdn.example.com/x", True),
        ("https://notcdn.example.com/x", False),
        ("https://example.com/x", False),
        ("https://CDN.Example.COM/x", True),
        ("https://cdn.example.com.evil.com/x", False),
    ],
)
def test_allow_list_matching(url, expected):
    assert is_host_allowed(url, CDN_ONLY) is expected


def test_empty_allow_list_allows_everything():
    assert is_host_allowed("https://anything.test/x", ProxySettings())


def test_allow_any_overrides_allow_list():
    settings = ProxySettings(allowed_hosts=("cdn.example.com",), allow_any=True)
    assert is_host_allowed("https://evil.com/x", settings)


def test_base_host_is_allowed_but_not_its_subdomains():
    assert is_host_allowed("https://origin.test/seg.ts", CDN_ONLY, "origin.test")
    assert not is_host_allowed("https://x.origin.test/seg.ts", CDN_ONLY, "origin.test")
    assert not is_host_allowed("https://other.test/seg.ts", CDN_ONLY, "origin.test")


@pytest.mark.parametrize(
    "url",
    ["not a url", "", "https://[::1/x", "/relative/path.ts", "mailto:someone"],
)
def test_malformed_urls_fail_closed(url):
    assert is_host_allowed(url, CDN_ONLY) is False


def test_decision_is_deterministic():
    inputs = [
        ("https://cdn.example.com/x", None),
        ("https://evil.com/x", "cdn.example.com"),
        ("https://evil.com/x", "evil.com"),
        ("bogus", None),
    ]
    first = [is_host_allowed(u, CDN_ONLY, b) for u, b in inputs]
    for _ in range(3):
        assert [is_host_allowed(u, CDN_ONLY, b) for u, b in inputs] == first


def test_allow_list_entries_are_normalised():
    settings = ProxySettings(allowed_hosts=(" .CDN.example.com ",))
    assert is_host_allowed("https://cdn.example.com/x", settings)
    assert is_host_allowed("https://edge.cdn.example.com/x", settings)


def test_require_allowed_host_raises_with_detail():
    with pytest.raises(HostNotAllowedError) as excinfo:
        require_allowed_host("https://evil.com/x", CDN_ONLY, detail="nope")
    assert excinfo.value.detail == "nope"
    assert excinfo.value.status_code == 400
    require_allowed_host("https://cdn.example.com/x", CDN_ONLY)


def test_host_of():
    assert host_of("https://User@CDN.example.com:8443/a") == "cdn.example.com"
    assert host_of("/just/a/path") is None
