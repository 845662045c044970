"""
URL normalization and the same-host domain policy.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

from webcrawl.errors import MalformedUrl

# Schemes the fetcher can retrieve
SCHEMES: frozenset[str] = frozenset(("http", "https"))

DEFAULT_PORTS = {"http": 80, "https": 443}


def remove_dot_segments(path: str) -> str:
    """Resolve "." and ".." segments in a URL path (RFC 3986, section 5.2.4)."""
    output: List[str] = []
    while path:
        if path.startswith("../"):
            path = path[3:]
        elif path.startswith("./"):
            path = path[2:]
        elif path.startswith("/./"):
            path = path[2:]
        elif path == "/.":
            path = "/"
        elif path.startswith("/../"):
            path = path[3:]
            if output:
                output.pop()
        elif path == "/..":
            path = "/"
            if output:
                output.pop()
        elif path in (".", ".."):
            path = ""
        else:
            start = 1 if path.startswith("/") else 0
            end = path.find("/", start)
            if end == -1:
                end = len(path)
            output.append(path[:end])
            path = path[end:]
    return "".join(output)


def is_valid_hostname(hostname: str) -> bool:
    """Check that every label is 1-63 characters and the name encodes as IDNA."""
    labels = hostname[:-1].split(".") if hostname.endswith(".") else hostname.split(".")
    if any(not label or len(label) > 63 for label in labels):
        return False
    try:
        hostname.encode("idna")
    except UnicodeError:
        return False
    return True


def normalize_url(base: str, href: str) -> str:
    """
    Resolve an href against base and return the canonical absolute URL.

    - Joins relative URLs against base
    - Drops fragments (#...) and userinfo
    - Lowercases scheme/host
    - Removes default ports (:80, :443)
    - Resolves dot segments, empty path becomes "/"
    - Keeps querystrings (they matter for uniqueness)

    Raises MalformedUrl when the result is not an absolute http(s) URL with a host.
    """
    href = (href or "").strip()
    if not href:
        raise MalformedUrl(href, "empty href")

    try:
        joined, _ = urldefrag(urljoin(base, href))
        parsed = urlsplit(joined)
        port = parsed.port
    except ValueError as e:
        raise MalformedUrl(href, str(e)) from e

    scheme = parsed.scheme.lower()
    if scheme not in SCHEMES:
        raise MalformedUrl(href, f"unsupported scheme '{scheme}'" if scheme else "no scheme")

    hostname = (parsed.hostname or "").lower()
    if not hostname:
        raise MalformedUrl(href, "missing host")
    if ":" in hostname:
        # IPv6 literal
        hostname = f"[{hostname}]"
    elif not is_valid_hostname(hostname):
        raise MalformedUrl(href, "invalid host")

    if port is None or port == DEFAULT_PORTS[scheme]:
        netloc = hostname
    else:
        netloc = f"{hostname}:{port}"

    path = remove_dot_segments(parsed.path) or "/"
    return urlunsplit((scheme, netloc, path, parsed.query, ""))


def host_of(url: str) -> str:
    """Lowercased host component of a URL, empty if it has none."""
    return (urlsplit(url).hostname or "").lower()


@dataclass(frozen=True, slots=True)
class BaseOrigin:
    """Scheme and host of the seed URL, fixed for the whole crawl."""
    scheme: str
    host: str

    @classmethod
    def from_url(cls, url: str) -> BaseOrigin:
        """Build the origin from an already normalized URL."""
        parsed = urlsplit(url)
        return cls(parsed.scheme.lower(), (parsed.hostname or "").lower())


def allow(candidate: str, origin: BaseOrigin, any_domain: bool = False) -> bool:
    """
    Decide whether a normalized URL may be fetched.

    Hosts are compared exactly (case-insensitive). A URL that merely contains the
    origin host somewhere in its text, like https://evil.com/example.com, is
    rejected.
    """
    if any_domain:
        return True
    return host_of(candidate) == origin.host.lower()


@dataclass(frozen=True, slots=True)
class DomainPolicy:
    """allow() bound to one crawl's origin and any-domain flag."""
    origin: BaseOrigin
    any_domain: bool = False

    def allow(self, candidate: str) -> bool:
        """Decide whether candidate may be fetched under this policy."""
        return allow(candidate, self.origin, self.any_domain)
