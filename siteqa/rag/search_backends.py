"""
Search backends consumed by scraping their rendered results pages.

Each backend knows the URL of its results page and the CSS selectors of its
result anchors; the shared ``RenderedPageSource`` does the navigation. A
backend raises when navigation times out or the result selector never
appears, which is what lets the retriever fall back to the next backend.
An empty but well-formed results page is not a failure.
"""

import logging
from typing import Dict, List, Optional, Type
from urllib.parse import quote_plus

from ..interfaces.base_interfaces import BaseSearchBackend, RenderedPageSource
from ..models import SearchResult
from ..utils.core import is_absolute_http_url, unwrap_redirect
from ..utils.validation import SearchConfig

logger = logging.getLogger(__name__)


class ResultsPageBackend(BaseSearchBackend):
    """Shared navigate, wait, harvest routine for scraped search engines."""

    results_url_template: str = ""
    result_selector: str = ""

    def __init__(self,
                 max_results: int,
                 navigation_timeout: float = 30.0,
                 selector_timeout: float = 10.0):
        self.max_results = max_results
        self.navigation_timeout = navigation_timeout
        self.selector_timeout = selector_timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    def results_url(self, query: str) -> str:
        return self.results_url_template.format(query=quote_plus(query))

    async def search(self, page_source: RenderedPageSource, query: str) -> List[SearchResult]:
        url = self.results_url(query)
        self.logger.info(f"Searching {self.name}: {query}")

        await page_source.navigate(url, timeout=self.navigation_timeout)
        await page_source.wait_for_selector(self.result_selector, timeout=self.selector_timeout)
        anchors = await page_source.query_links(self.result_selector, limit=self.max_results)

        results = []
        for anchor in anchors:
            target = unwrap_redirect(anchor.url)
            if not is_absolute_http_url(target):
                self.logger.debug(f"Dropping non-http result {anchor.url!r}")
                continue
            results.append(SearchResult(url=target, title=anchor.title))

        self.logger.info(f"{self.name} returned {len(results)} results")
        return results


class GoogleSearchBackend(ResultsPageBackend):
    """Google web search. Result headings resolve to their enclosing anchor."""

    name = "google"
    results_url_template = "https://www.google.com/search?q={query}&num=10"
    result_selector = "div[data-ved] a h3, .yuRUbf a h3"


class DuckDuckGoSearchBackend(ResultsPageBackend):
    """DuckDuckGo, both the JavaScript and the HTML-only result layouts."""

    name = "duckduckgo"
    results_url_template = "https://duckduckgo.com/?q={query}"
    result_selector = 'a[data-testid="result-title-a"], a.result__a'


BACKEND_REGISTRY: Dict[str, Type[ResultsPageBackend]] = {
    GoogleSearchBackend.name: GoogleSearchBackend,
    DuckDuckGoSearchBackend.name: DuckDuckGoSearchBackend,
}


def create_backends(search_config: Optional[SearchConfig] = None) -> List[BaseSearchBackend]:
    """
    Instantiate the configured backends in fallback order.

    Args:
        search_config: Search section of the validated configuration

    Returns:
        Backends with the primary first
    """
    search_config = search_config or SearchConfig()
    backends = []
    for name in search_config.backends:
        backend_cls = BACKEND_REGISTRY[name]
        max_results = getattr(search_config, f"{name}_max_results")
        backends.append(backend_cls(
            max_results=max_results,
            navigation_timeout=search_config.navigation_timeout,
            selector_timeout=search_config.selector_timeout,
        ))
    logger.debug(f"Search backends: {[b.name for b in backends]}")
    return backends
