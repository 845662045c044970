"""
Core crawling logic: the worker pool and the records it produces.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from webcrawl.config import CrawlConfig
from webcrawl.errors import FetchError, MalformedUrl
from webcrawl.fetcher import HttpFetcher
from webcrawl.frontier import Coordinator, VisitedSet
from webcrawl.parser import extract_links
from webcrawl.urls import normalize_url

logger = logging.getLogger(__name__)

# fetch(url) -> body text, raises FetchError
FetchFn = Callable[[str], str]
# extract(body) -> raw href values in document order
ExtractFn = Callable[[str], Sequence[str]]


@dataclass(slots=True)
class PageResult:
    """Result data for a single fetched page."""
    url: str
    fetched_at: Optional[str] = None
    ok: bool = False
    error: Optional[str] = None
    status_code: Optional[int] = None
    links_found: int = 0
    links_admitted: int = 0
    worker: Optional[str] = None


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during crawl for summary output."""
    pages_crawled: int = 0
    pages_failed: int = 0
    links_seen: int = 0
    links_admitted: int = 0
    links_rejected: int = 0
    links_malformed: int = 0
    error_counts: Dict[str, int] = field(default_factory=dict)

    def record_error(self, kind: str) -> None:
        """Record a fetch failure by FetchError kind."""
        self.error_counts[kind] = self.error_counts.get(kind, 0) + 1

    def record_page(self, page: PageResult, rejected: int = 0, malformed: int = 0) -> None:
        """Record one processed page and what happened to its links."""
        self.pages_crawled += 1
        if not page.ok:
            self.pages_failed += 1
            self.record_error(page.error or "unknown")
        self.links_seen += page.links_found
        self.links_admitted += page.links_admitted
        self.links_rejected += rejected
        self.links_malformed += malformed


def utc_now_iso() -> str:
    """Return current UTC time in ISO format."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class WorkerPool:
    """
    A fixed number of worker threads sharing one frontier, visited set and
    coordinator.

    Every worker runs the same loop: claim a URL, fetch it, extract its links,
    then normalize, filter and admit each link. Fetch failures and malformed
    links are logged and counted but never stop the crawl. Any other exception
    from a collaborator cancels the crawl and is re-raised by join().
    """

    def __init__(
        self,
        config: CrawlConfig,
        fetch: FetchFn,
        extract: ExtractFn = extract_links,
    ) -> None:
        self.config = config
        self.policy = config.policy
        self.visited = VisitedSet()
        self.coordinator = Coordinator()
        self.stats = CrawlStats()

        self._fetch = fetch
        self._extract = extract
        self._lock = threading.Lock()
        self._results: Dict[str, PageResult] = {}
        self._claimed = 0
        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: List[Future] = []

    def run(self) -> Tuple[List[PageResult], CrawlStats]:
        """Crawl from the seed until quiescence (or cancellation) and return the results."""
        self.start()
        return self.join()

    def start(self) -> None:
        """Admit the seed and start the workers without waiting for them."""
        if self._executor is not None:
            raise RuntimeError("WorkerPool has already been started")

        seed = self.config.seed
        self.visited.try_admit(seed)
        self.coordinator.submit(seed)

        logger.info(
            "Starting crawl from %s with %d worker(s), any_domain=%s",
            seed, self.config.workers, self.config.any_domain,
        )
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.workers,
            thread_name_prefix="crawl-worker",
        )
        self._futures = [self._executor.submit(self._work) for _ in range(self.config.workers)]

    def join(self) -> Tuple[List[PageResult], CrawlStats]:
        """
        Wait for every worker to exit.

        Re-raises the first unexpected worker exception, if any.
        """
        if self._executor is None:
            raise RuntimeError("WorkerPool has not been started")
        wait(self._futures)
        self._executor.shutdown(wait=True)

        for future in self._futures:
            error = future.exception()
            if error is not None:
                raise error

        logger.info(
            "Crawl done: %d page(s) processed, %d failed, %d URL(s) admitted",
            self.stats.pages_crawled, self.stats.pages_failed, len(self.visited),
        )
        return self.results, self.stats

    def cancel(self) -> None:
        """Stop the crawl early. Workers finish their current fetch and exit."""
        self.coordinator.cancel()

    @property
    def results(self) -> List[PageResult]:
        """Results for every processed URL, sorted by URL."""
        with self._lock:
            return [self._results[u] for u in sorted(self._results)]

    def _work(self) -> None:
        worker = threading.current_thread().name
        while True:
            url = self.coordinator.acquire()
            if url is None:
                logger.debug("%s exiting", worker)
                return
            try:
                self._process(url, worker)
            except BaseException:
                self.coordinator.cancel()
                raise
            finally:
                self.coordinator.release()

    def _process(self, url: str, worker: str) -> None:
        if not self._claim_page():
            logger.info("Reached max pages (%d), stopping crawl", self.config.max_pages)
            self.coordinator.cancel()
            return

        page = PageResult(url=url, fetched_at=utc_now_iso(), worker=worker)
        try:
            body = self._fetch(url)
        except FetchError as e:
            logger.warning("Fetch failed (%s): %s", e.kind, e)
            page.error = e.kind
            page.status_code = e.status_code
            self._record(page)
            return

        page.ok = True
        if self.coordinator.cancelled:
            # Partial results are fine once a shutdown was requested
            self._record(page)
            return

        hrefs = self._extract(body)
        rejected = malformed = 0
        for href in hrefs:
            try:
                target = normalize_url(url, href)
            except MalformedUrl as e:
                logger.debug("Skipping link on %s: %s", url, e)
                malformed += 1
                continue

            if not self.policy.allow(target):
                logger.debug("Rejected by domain policy: %s", target)
                rejected += 1
                continue

            if self.visited.try_admit(target):
                self.coordinator.submit(target)
                page.links_admitted += 1

        page.links_found = len(hrefs)
        self._record(page, rejected=rejected, malformed=malformed)
        logger.info("Fetched %s (+%d new links)", url, page.links_admitted)

    def _claim_page(self) -> bool:
        with self._lock:
            if self.config.max_pages is not None and self._claimed >= self.config.max_pages:
                return False
            self._claimed += 1
            return True

    def _record(self, page: PageResult, rejected: int = 0, malformed: int = 0) -> None:
        with self._lock:
            self._results[page.url] = page
            self.stats.record_page(page, rejected=rejected, malformed=malformed)


def crawl(
    config: CrawlConfig,
    fetch: Optional[FetchFn] = None,
    extract: ExtractFn = extract_links,
) -> Tuple[List[PageResult], CrawlStats]:
    """
    Crawl every eligible page reachable from config.seed.

    Args:
        config: Validated crawl configuration (see CrawlConfig.create).
        fetch: Page fetcher; defaults to an HttpFetcher built from the config.
        extract: Link extractor; defaults to the BeautifulSoup <a href> extractor.

    Returns:
        Tuple of (results list, crawl statistics).
    """
    if fetch is not None:
        return WorkerPool(config, fetch, extract).run()

    with HttpFetcher(timeout_s=config.timeout_s, user_agent=config.user_agent) as fetcher:
        return WorkerPool(config, fetcher, extract).run()
