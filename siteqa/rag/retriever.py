"""
Domain-restricted link retrieval for the QA pipeline.

Finds candidate pages and documents on the organization's own domain by
running site-restricted queries against the configured search backends
(primary first, the next backend only when the previous one fails for that
query) and, when search produces nothing at all, crawling a fixed list of
seed paths on the domain.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

from ..interfaces.base_interfaces import BaseSearchBackend, RenderedPageSource
from ..models import SearchResult
from ..utils.core import belongs_to_domain, normalize_url
from ..utils.validation import SiteQAConfig
from .search_backends import create_backends

logger = logging.getLogger(__name__)


def deduplicate(results: Iterable[SearchResult]) -> List[SearchResult]:
    """
    Drop repeated URLs, keeping the first occurrence and the original order.

    URLs are compared by their normalized form, so fragment and tracking
    parameter variants count as the same page.
    """
    seen = set()
    unique = []
    for result in results:
        key = normalize_url(result.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(result)
    return unique


class DomainRetriever:
    """Search-then-crawl retriever bounded to one web domain."""

    def __init__(self,
                 config: SiteQAConfig,
                 backends: Optional[Sequence[BaseSearchBackend]] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """
        Initialize the retriever.

        Args:
            config: Validated configuration
            backends: Search backends in fallback order (built from config if None)
            sleep: Coroutine used for the pause between queries
        """
        self.config = config
        self.domain = config.organization.domain
        self.max_links = config.retrieval.max_links
        self.backends = list(backends) if backends is not None else create_backends(config.search)
        self._sleep = sleep

        logger.info(
            f"Retriever for {self.domain}: backends={[b.name for b in self.backends]}, "
            f"max_links={self.max_links}"
        )

    def build_queries(self, question: str) -> List[str]:
        """Fill the configured query templates with the domain and question."""
        queries = []
        for template in self.config.search.query_templates:
            query = template.format(domain=self.domain, question=question.strip())
            if query not in queries:
                queries.append(query)
        return queries

    async def _search_query(self, page_source: RenderedPageSource, query: str) -> List[SearchResult]:
        """Run one query, falling back through the backends until one succeeds."""
        for backend in self.backends:
            try:
                return await backend.search(page_source, query)
            except Exception as e:
                logger.warning(f"Search backend {backend.name} failed for {query!r}: {e}")

        logger.error(f"All search backends failed for {query!r}")
        return []

    async def search(self, page_source: RenderedPageSource, question: str) -> List[SearchResult]:
        """
        Collect results for every domain-restricted query.

        Returns:
            Results in backend order across queries, already limited to the domain
        """
        collected: List[SearchResult] = []
        queries = self.build_queries(question)

        for index, query in enumerate(queries):
            if index > 0 and self.config.search.query_delay > 0:
                await self._sleep(self.config.search.query_delay)
            collected.extend(await self._search_query(page_source, query))

        on_domain = [r for r in collected if belongs_to_domain(r.url, self.domain)]
        logger.info(f"Search produced {len(collected)} results, {len(on_domain)} on {self.domain}")
        return on_domain

    def _is_crawlable_link(self, link: SearchResult) -> bool:
        url = link.url
        return (
            bool(link.title)
            and '#' not in url
            and not url.lower().startswith('javascript:')
            and belongs_to_domain(url, self.domain)
        )

    async def crawl(self, page_source: RenderedPageSource) -> List[SearchResult]:
        """
        Harvest internal links from the configured seed paths.

        Each seed page contributes its own URL and title plus every anchor
        that stays on the domain, has visible text, and is neither a fragment
        nor a ``javascript:`` link. Seeds that fail to load are skipped.
        """
        base_url = self.config.organization.base_url
        found: List[SearchResult] = []

        for path in self.config.retrieval.crawl_paths:
            seed = f"{base_url}{path}"
            try:
                logger.info(f"Crawling {seed}")
                await page_source.navigate(seed, timeout=self.config.retrieval.crawl_timeout)
                links = await page_source.query_links('a[href]')
                found.extend(link for link in links if self._is_crawlable_link(link))
                found.append(SearchResult(url=seed, title=await page_source.title()))
            except Exception as e:
                logger.warning(f"Failed to crawl {seed}: {e}")

        logger.info(f"Crawl harvested {len(found)} links")
        return found

    async def retrieve(self, page_source: RenderedPageSource, question: str) -> List[SearchResult]:
        """
        Retrieve candidate links for ``question``.

        Args:
            page_source: Rendering session shared with the rest of the request
            question: Validated question text

        Returns:
            Deduplicated on-domain results, at most ``max_links`` long. Empty
            when both search and crawl came up with nothing.
        """
        results = await self.search(page_source, question)

        if not results:
            logger.info("No search results, falling back to direct crawl")
            results = await self.crawl(page_source)

        results = [r for r in deduplicate(results) if belongs_to_domain(r.url, self.domain)]
        results = results[:self.max_links]

        logger.info(f"Retrieved {len(results)} links from {self.domain}")
        return results
