"""
Immutable crawl configuration, built once at startup and shared by all workers.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from webcrawl.errors import ConfigError, MalformedUrl
from webcrawl.urls import BaseOrigin, DomainPolicy, normalize_url

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 1
DEFAULT_TIMEOUT_S = 15.0
DEFAULT_USER_AGENT = "webcrawl/1.0"


def parse_workers(value: Union[str, int, None], default: int = DEFAULT_WORKERS) -> int:
    """Parse a worker count, falling back to default with a warning if it is unusable."""
    if value is None:
        return default
    try:
        workers = int(value)
    except (TypeError, ValueError):
        logger.warning("Unable to parse workers %r, defaulting to %d", value, default)
        return default
    if workers < 1:
        logger.warning("Worker count must be positive (got %d), defaulting to %d", workers, default)
        return default
    return workers


@dataclass(frozen=True, slots=True)
class CrawlConfig:
    """Settings for one crawl. Use CrawlConfig.create() to build a validated instance."""
    seed: str
    origin: BaseOrigin
    any_domain: bool = False
    workers: int = DEFAULT_WORKERS
    max_pages: Optional[int] = None
    timeout_s: float = DEFAULT_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def create(
        cls,
        seed: str,
        any_domain: bool = False,
        workers: int = DEFAULT_WORKERS,
        max_pages: Optional[int] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> CrawlConfig:
        """
        Normalize the seed URL and derive the crawl origin.

        Raises ConfigError for an unusable seed, pool size, page cap or timeout.
        """
        try:
            seed_normalized = normalize_url(seed, seed)
        except MalformedUrl as e:
            raise ConfigError(f"Invalid seed URL {seed!r}: {e.reason}") from e

        if workers < 1:
            raise ConfigError(f"Worker count must be at least 1, got {workers}")
        if max_pages is not None and max_pages < 1:
            raise ConfigError(f"max_pages must be at least 1, got {max_pages}")
        if timeout_s <= 0:
            raise ConfigError(f"Timeout must be positive, got {timeout_s}")

        return cls(
            seed=seed_normalized,
            origin=BaseOrigin.from_url(seed_normalized),
            any_domain=any_domain,
            workers=workers,
            max_pages=max_pages,
            timeout_s=timeout_s,
            user_agent=user_agent,
        )

    @property
    def policy(self) -> DomainPolicy:
        """Domain policy for this crawl's origin and any-domain flag."""
        return DomainPolicy(self.origin, self.any_domain)
