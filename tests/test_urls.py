"""
URL Normalization and Domain Policy Tests
"""

import pytest

from webcrawl.errors import MalformedUrl
from webcrawl.urls import BaseOrigin, DomainPolicy, allow, normalize_url, remove_dot_segments


# ==========================================
# Tests for normalize_url
# ==========================================


def test_normalize_url_relative_path():
    assert normalize_url("http://example.com/dir/page1", "page2.html") == "http://example.com/dir/page2.html"


def test_normalize_url_root_relative():
    assert normalize_url("http://a.test/x/y", "/b") == "http://a.test/b"


def test_normalize_url_protocol_relative():
    assert normalize_url("https://a.test/", "//cdn.a.test/lib") == "https://cdn.a.test/lib"


def test_normalize_url_absolute_kept():
    assert normalize_url("http://example.com/page1", "http://other.com/foo?q=1") == "http://other.com/foo?q=1"


def test_normalize_url_lowercases_scheme_and_host():
    assert normalize_url("http://example.com", "HTTP://EXAMPLE.COM/Path") == "http://example.com/Path"


def test_normalize_url_removes_fragment():
    assert normalize_url("http://example.com", "/page#section") == "http://example.com/page"


def test_normalize_url_removes_default_port():
    assert normalize_url("http://a.test", "http://a.test:80/x") == "http://a.test/x"
    assert normalize_url("http://a.test", "https://a.test:443/x") == "https://a.test/x"
    assert normalize_url("http://a.test", "http://a.test:8080/x") == "http://a.test:8080/x"


def test_normalize_url_empty_path_becomes_slash():
    assert normalize_url("http://a.test", "http://a.test") == "http://a.test/"


def test_normalize_url_resolves_dot_segments_in_absolute_url():
    assert normalize_url("http://a.test/", "http://a.test/a/./b/../c") == "http://a.test/a/c"


def test_normalize_url_resolves_parent_of_relative_href():
    assert normalize_url("http://a.test/a/b/c", "../d") == "http://a.test/a/d"


def test_normalize_url_drops_userinfo():
    assert normalize_url("http://a.test/", "http://user:pw@a.test/x") == "http://a.test/x"


def test_normalize_url_keeps_ipv6_brackets():
    assert normalize_url("http://a.test/", "http://[::1]:8000/x") == "http://[::1]:8000/x"


@pytest.mark.parametrize("href", [
    "",
    "   ",
    "mailto:user@example.com",
    "javascript:alert(1)",
    "ftp://files.example.com/x",
    "http://a.test:notaport/",
    "http://a..b/",
    "http://.a.test/",
    "http://" + "a" * 64 + ".com/",
])
def test_normalize_url_malformed(href):
    with pytest.raises(MalformedUrl):
        normalize_url("http://example.com/", href)


def test_normalize_url_invalid_host_reason():
    with pytest.raises(MalformedUrl, match="invalid host"):
        normalize_url("http://a.test/", "http://a..b/")


def test_normalize_url_accepts_trailing_dot_and_long_label():
    assert normalize_url("http://a.test/", "http://a.test./x") == "http://a.test./x"
    host = "a" * 63 + ".com"
    assert normalize_url("http://a.test/", f"http://{host}/") == f"http://{host}/"


def test_normalize_url_relative_without_base_is_malformed():
    with pytest.raises(MalformedUrl, match="no scheme"):
        normalize_url("", "/b")


@pytest.mark.parametrize("href", [
    "/b",
    "c/d/../e?x=1#frag",
    "HTTPS://Example.COM:443",
    "http://a.test/./x/../y/",
    "//other.test",
    "?page=2",
])
def test_normalize_url_idempotent(href):
    base = "http://a.test/dir/index.html"
    once = normalize_url(base, href)
    assert normalize_url(base, once) == once


@pytest.mark.parametrize("path,expected", [
    ("/a/b/c/./../../g", "/a/g"),
    ("mid/content=5/../6", "mid/6"),
    ("/..", "/"),
    ("/a/.", "/a/"),
    ("", ""),
])
def test_remove_dot_segments(path, expected):
    assert remove_dot_segments(path) == expected


# ==========================================
# Tests for domain policy
# ==========================================


@pytest.fixture
def origin():
    return BaseOrigin.from_url("https://example.com/start")


def test_allow_same_host(origin):
    assert allow("https://example.com/x", origin) is True


def test_allow_rejects_host_only_in_path(origin):
    assert allow("https://evil.com/example.com", origin) is False


def test_allow_rejects_host_prefix_lookalike(origin):
    assert allow("https://example.com.evil.com/", origin) is False


def test_allow_host_case_insensitive(origin):
    assert allow("https://EXAMPLE.com/y", origin) is True


def test_allow_ignores_scheme(origin):
    assert allow("http://example.com/plain", origin) is True


def test_allow_rejects_subdomain(origin):
    assert allow("https://www.example.com/", origin) is False


def test_allow_any_domain(origin):
    assert allow("https://evil.com/example.com", origin, any_domain=True) is True
    assert allow("http://anything.test/", origin, any_domain=True) is True


def test_domain_policy_binds_origin(origin):
    policy = DomainPolicy(origin)
    assert policy.allow("https://example.com/a")
    assert not policy.allow("https://other.com/a")
    assert DomainPolicy(origin, any_domain=True).allow("https://other.com/a")


def test_base_origin_from_url_lowercases():
    assert BaseOrigin.from_url("HTTP://Example.COM:8080/x") == BaseOrigin("http", "example.com")
