"""
Test configuration and fixtures for crawler tests
"""

import threading
import time
from typing import Dict, List, Optional

import pytest

from webcrawl.errors import FetchError


class FakeWeb:
    """In-memory link graph standing in for the network.

    pages maps a URL to the hrefs found on it. URLs missing from pages answer
    with HTTP 404. Every fetch is recorded, so tests can check how often each
    URL was requested.
    """

    def __init__(
        self,
        pages: Dict[str, List[str]],
        delay: float = 0.0,
        delays: Optional[Dict[str, float]] = None,
        failures: Optional[Dict[str, str]] = None,
    ):
        self.pages = pages
        self.delay = delay
        self.delays = delays or {}
        self.failures = failures or {}
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch(self, url: str) -> str:
        with self._lock:
            self.calls.append(url)
        pause = self.delays.get(url, self.delay)
        if pause:
            time.sleep(pause)
        if url in self.failures:
            raise FetchError(url, self.failures[url], "simulated failure")
        if url not in self.pages:
            raise FetchError(url, FetchError.HTTP_STATUS, status_code=404)
        return "\n".join(self.pages[url])

    @staticmethod
    def extract(body: str) -> List[str]:
        return body.split("\n") if body else []


def build_graph(num_nodes: int = 50, host: str = "http://example.com") -> Dict[str, List[str]]:
    """Fan-out graph with cycles, cross-links and a few off-site decoys."""
    urls = [f"{host}/page/{i}" for i in range(num_nodes)]
    pages: Dict[str, List[str]] = {}
    for i, url in enumerate(urls):
        links = [urls[(i + j) % num_nodes] for j in range(1, 4)]
        links.append(urls[(i * 7) % num_nodes])
        if i % 10 == 0:
            links.append(f"http://other-site-{i}.com/page")
        pages[url] = links
    return pages


@pytest.fixture
def scenario_web():
    """Seed page linking to a relative, an absolute and an off-domain URL."""
    return FakeWeb({
        "http://a.test/": ["/b", "http://a.test/c", "http://other.test/d"],
        "http://a.test/b": [],
        "http://a.test/c": [],
        "http://other.test/d": [],
    })
