"""
HTTP fetcher built on requests.
"""
from __future__ import annotations

import logging
import threading
from typing import List, Optional

import requests
from urllib3.exceptions import LocationParseError

from webcrawl.config import DEFAULT_TIMEOUT_S, DEFAULT_USER_AGENT
from webcrawl.errors import FetchError

logger = logging.getLogger(__name__)


class HttpFetcher:
    """
    Fetch pages over HTTP(S) and return their body text.

    Each worker thread gets its own requests.Session, since sessions are not
    documented as thread-safe. Redirects are followed. Responses that are not
    HTML come back as an empty body, so they yield no links.
    """

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self._local = threading.local()
        self._sessions_lock = threading.Lock()
        self._sessions: List[requests.Session] = []

    def __call__(self, url: str) -> str:
        return self.fetch(url)

    def fetch(self, url: str) -> str:
        """Fetch url. Raises FetchError on timeouts, connection failures, HTTP errors and undecodable bodies."""
        try:
            resp = self._session().get(url, timeout=self.timeout_s, allow_redirects=True)
        except requests.Timeout as e:
            raise FetchError(url, FetchError.TIMEOUT, str(e)) from e
        except requests.RequestException as e:
            raise FetchError(url, FetchError.CONNECTION, str(e)) from e
        except (LocationParseError, ValueError) as e:
            # urllib3 rejects some hosts (empty or over-long labels) outside RequestException
            raise FetchError(url, FetchError.CONNECTION, str(e)) from e

        if resp.status_code >= 400:
            raise FetchError(url, FetchError.HTTP_STATUS, status_code=resp.status_code)

        # Only parse HTML content
        content_type = (resp.headers.get("content-type") or "").lower()
        if "text/html" not in content_type:
            logger.debug("Skipping non-HTML response from %s (%s)", url, content_type or "no content-type")
            return ""

        try:
            return resp.text
        except (UnicodeDecodeError, LookupError) as e:
            raise FetchError(url, FetchError.DECODE, str(e)) from e

    def close(self) -> None:
        """Close every session opened by any worker thread."""
        with self._sessions_lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _session(self) -> requests.Session:
        """Return the calling thread's session, creating it on first use."""
        session: Optional[requests.Session] = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = self.user_agent
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session
