"""
Link extraction from HTML pages.
"""
from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup, SoupStrainer

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


def extract_links(html: str) -> List[str]:
    """Return raw href values of <a> tags in document order, including empty ones."""
    if not html:
        return []
    soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
    return [a["href"] for a in soup.find_all("a") if a.get("href") is not None]

