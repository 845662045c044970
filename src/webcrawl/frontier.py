"""
Shared crawl state: the visited set, the frontier queue and the coordinator
that tracks in-flight work and detects quiescence.

All three are safe to use from any number of worker threads. Callers only see
the operations below; the locks stay private.
"""
from __future__ import annotations

import logging
from collections import deque
from threading import Condition, Lock
from typing import Deque, Optional, Set

logger = logging.getLogger(__name__)


class VisitedSet:
    """URLs that have been admitted to the crawl (enqueued or fetched)."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._urls: Set[str] = set()

    def try_admit(self, url: str) -> bool:
        """
        Insert url if it is not present yet.

        Returns True for exactly one caller per URL, no matter how many threads
        race on it. The membership check and the insert share one critical
        section.
        """
        with self._lock:
            if url in self._urls:
                return False
            self._urls.add(url)
            return True

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)


class Frontier:
    """FIFO queue of URLs waiting to be fetched."""

    def __init__(self, ready: Optional[Condition] = None) -> None:
        # Coordinator passes its own condition so that pushes wake its waiters
        self._ready = ready if ready is not None else Condition()
        self._queue: Deque[str] = deque()

    def push(self, url: str) -> None:
        """Append url to the tail and wake one waiting worker."""
        with self._ready:
            self._queue.append(url)
            self._ready.notify()

    def pop(self) -> Optional[str]:
        """Remove and return the head, or None if the queue is empty. Never blocks."""
        with self._ready:
            if not self._queue:
                return None
            return self._queue.popleft()

    def __len__(self) -> int:
        with self._ready:
            return len(self._queue)


class Coordinator:
    """
    Hands out work to workers and decides when the crawl is over.

    A URL counts as in flight from the moment acquire() pops it until the
    worker calls release(). The crawl is finished only when the frontier is
    empty and nothing is in flight; both are checked under the same condition
    that guards every push, pop and counter update, so no worker can see a
    half-updated state. Idle workers sleep on that condition instead of
    polling, and are woken by each push and by the single quiescence
    broadcast.
    """

    def __init__(self) -> None:
        self._ready = Condition()
        self.frontier = Frontier(self._ready)
        self._in_flight = 0
        self._finished = False
        self._cancelled = False

    def submit(self, url: str) -> None:
        """Queue an admitted URL for fetching."""
        self.frontier.push(url)

    def acquire(self) -> Optional[str]:
        """
        Block until a URL is available and claim it.

        Returns None once the crawl is finished or cancelled; the worker should
        then exit.
        """
        with self._ready:
            while True:
                if self._cancelled or self._finished:
                    return None
                url = self.frontier.pop()
                if url is not None:
                    self._in_flight += 1
                    return url
                if self._in_flight == 0:
                    self._declare_finished()
                    return None
                self._ready.wait()

    def release(self) -> None:
        """Mark the URL claimed by the calling worker as fully processed."""
        with self._ready:
            if self._in_flight <= 0:
                raise RuntimeError("release() called with no work in flight")
            self._in_flight -= 1
            # After cancel() the cancellation broadcast is the only one
            if self._in_flight == 0 and not len(self.frontier) and not self._cancelled:
                self._declare_finished()

    def cancel(self) -> None:
        """Ask every worker to stop at its next loop boundary."""
        with self._ready:
            if self._cancelled or self._finished:
                return
            self._cancelled = True
            logger.info("Crawl cancelled with %d URL(s) in flight", self._in_flight)
            self._ready.notify_all()

    @property
    def in_flight(self) -> int:
        with self._ready:
            return self._in_flight

    @property
    def finished(self) -> bool:
        with self._ready:
            return self._finished

    @property
    def cancelled(self) -> bool:
        with self._ready:
            return self._cancelled

    def _declare_finished(self) -> None:
        # Caller holds self._ready
        if self._finished:
            return
        self._finished = True
        logger.info("Frontier drained and no work in flight, crawl finished")
        self._ready.notify_all()
