"""
In-memory stand-ins for the rendering engine and the search engines.
"""

from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Sequence

from siteqa.interfaces.base_interfaces import BaseSearchBackend, RenderedPageSource
from siteqa.models import SearchResult


class FakePage:
    """One page served by ``FakePageSource``."""

    def __init__(self, html: str = "", title: str = "", links: Optional[List[SearchResult]] = None,
                 text: str = ""):
        self.html = html
        self.title = title
        self.links = links or []
        self.text = text


class FakePageSource(RenderedPageSource):
    """RenderedPageSource over a dict of URL -> FakePage."""

    def __init__(self, pages: Optional[Dict[str, FakePage]] = None, failing: Sequence[str] = ()):
        self.pages = pages or {}
        self.failing = set(failing)
        self.navigations: List[str] = []
        self.current: Optional[FakePage] = None
        self.text_selectors: Optional[List[str]] = None

    async def navigate(self, url, timeout=None):
        self.navigations.append(url)
        if url in self.failing or url not in self.pages:
            raise TimeoutError(f"Navigation to {url} timed out")
        self.current = self.pages[url]

    async def wait_for_selector(self, selector, timeout=None):
        if self.current is None or not self.current.links:
            raise TimeoutError(f"Selector {selector} not found")

    async def query_links(self, selectors, limit=None):
        links = list(self.current.links) if self.current else []
        return links[:limit] if limit else links

    async def extract_text(self, selectors):
        self.text_selectors = list(selectors)
        return self.current.text if self.current else ""

    async def content(self):
        return self.current.html if self.current else ""

    async def title(self):
        return self.current.title if self.current else ""


class ScriptedBackend(BaseSearchBackend):
    """Search backend returning canned results per query, or raising."""

    def __init__(self, name: str, results: Optional[Dict[str, List[SearchResult]]] = None,
                 fail: bool = False):
        self.name = name
        self.results = results or {}
        self.fail = fail
        self.queries: List[str] = []

    async def search(self, page_source, query):
        self.queries.append(query)
        if self.fail:
            raise TimeoutError(f"{self.name} timed out")
        return list(self.results.get(query, []))


class SessionFactory:
    """Page source factory that records how many sessions were opened and closed."""

    def __init__(self, page_source: RenderedPageSource):
        self.page_source = page_source
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def _session(self):
        self.opened += 1
        try:
            yield self.page_source
        finally:
            self.closed += 1

    def __call__(self):
        return self._session()


def html_page(title: str, body: str, description: str = "") -> str:
    return (
        f"<html><head><title>{title}</title>"
        f"<meta name='description' content='{description}'></head>"
        f"<body><nav>Home | About</nav><main>{body}</main><footer>Footer</footer></body></html>"
    )


