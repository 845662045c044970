"""
Error taxonomy for the crawler.

Only ConfigError is fatal, and only at startup. MalformedUrl and FetchError are
reported by the worker that hit them and never leave that loop iteration.
"""
from __future__ import annotations

from typing import Optional


class CrawlError(Exception):
    """Base class for all crawler errors."""


class ConfigError(CrawlError):
    """Invalid crawl configuration (bad seed URL, bad pool size)."""


class MalformedUrl(CrawlError):
    """An href could not be turned into a fetchable absolute URL."""

    def __init__(self, href: str, reason: str) -> None:
        super().__init__(f"{reason}: {href!r}")
        self.href = href
        self.reason = reason


class FetchError(CrawlError):
    """A single page could not be fetched."""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    HTTP_STATUS = "http_status"
    DECODE = "decode"

    KINDS = frozenset((TIMEOUT, CONNECTION, HTTP_STATUS, DECODE))

    def __init__(
        self,
        url: str,
        kind: str,
        message: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        if kind not in self.KINDS:
            raise ValueError(f"Unknown fetch error kind: {kind}")
        detail = message or kind
        if status_code is not None:
            detail = f"HTTP {status_code}"
        super().__init__(f"{url}: {detail}")
        self.url = url
        self.kind = kind
        self.status_code = status_code
