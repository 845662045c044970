"""
Concurrent breadth-first web crawler.
Fetches every page reachable from a seed URL with a fixed pool of worker threads.
"""
from webcrawl.config import CrawlConfig
from webcrawl.core import crawl, CrawlStats, PageResult, WorkerPool
from webcrawl.errors import ConfigError, CrawlError, FetchError, MalformedUrl
from webcrawl.frontier import Coordinator, Frontier, VisitedSet
from webcrawl.urls import BaseOrigin, DomainPolicy, allow, normalize_url

__version__ = "1.0.0"
__all__ = [
    "crawl",
    "CrawlConfig",
    "CrawlStats",
    "PageResult",
    "WorkerPool",
    "Coordinator",
    "Frontier",
    "VisitedSet",
    "BaseOrigin",
    "DomainPolicy",
    "allow",
    "normalize_url",
    "ConfigError",
    "CrawlError",
    "FetchError",
    "MalformedUrl",
]
