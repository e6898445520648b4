"""
Abstract base classes and error taxonomy for siteqa components.

This module defines the capabilities the pipeline depends on, so that the
browser automation library, the search engines and the language model can be
replaced (or faked in tests) without touching the coordination logic.

Classes:
    RenderedPageSource: Abstract headless-rendering capability
    BaseSearchBackend: Abstract search engine consumed by scraping its results page
    BaseAnswerGenerator: Abstract answer-generation collaborator
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..models import ContentSource, Query, SearchResult


class RenderedPageSource(ABC):
    """
    Abstract capability over a single rendering engine page.

    One instance is shared sequentially by every retrieval and extraction
    step of a request. Implementations must raise on navigation failure or
    timeout; callers decide whether a failure is fatal.
    """

    @abstractmethod
    async def navigate(self, url: str, timeout: Optional[float] = None) -> None:
        """
        Load ``url`` and wait until the page has settled.

        Args:
            url: Absolute URL to load
            timeout: Navigation timeout in seconds (implementation default if None)

        Raises:
            Exception: When navigation fails or times out
        """
        pass

    @abstractmethod
    async def wait_for_selector(self, selector: str, timeout: Optional[float] = None) -> None:
        """
        Wait until an element matching ``selector`` is present.

        Raises:
            Exception: When no matching element appears before the timeout
        """
        pass

    @abstractmethod
    async def query_links(self, selectors: str, limit: Optional[int] = None) -> List[SearchResult]:
        """
        Collect anchors matching ``selectors`` on the current page.

        Matches that are not anchors themselves resolve to their closest
        enclosing anchor. URLs are returned absolute, as the browser resolved
        them; titles are the trimmed text of the matched element.

        Args:
            selectors: CSS selector list
            limit: Keep at most this many matches, in document order

        Returns:
            List of SearchResult in document order
        """
        pass

    @abstractmethod
    async def extract_text(self, selectors: Sequence[str]) -> str:
        """Return the rendered text of the first selector that matches, or ''."""
        pass

    @abstractmethod
    async def content(self) -> str:
        """Return the current rendered HTML."""
        pass

    @abstractmethod
    async def title(self) -> str:
        """Return the current document title."""
        pass


class BaseSearchBackend(ABC):
    """
    Abstract base class for search engines consumed via their rendered results page.
    """

    name: str = "base"

    @abstractmethod
    async def search(self, page_source: RenderedPageSource, query: str) -> List[SearchResult]:
        """
        Run ``query`` and return the result anchors in engine order.

        Raises:
            Exception: On navigation failure, timeout or missing result selector
        """
        pass


class BaseAnswerGenerator(ABC):
    """
    Abstract base class for the answer-generation collaborator.
    """

    @abstractmethod
    async def generate(self, query: Query, sources: List[ContentSource]) -> str:
        """
        Generate an answer for ``query`` from ``sources``.

        Raises:
            AnswerGenerationFailure: When the language model call fails
        """
        pass


class SiteQAError(Exception):
    """Base exception for siteqa component errors."""
    pass


class ValidationError(SiteQAError):
    """Raised when a question is rejected before any retrieval happens."""
    pass


class RetrievalExhausted(SiteQAError):
    """Raised when search and direct crawl both produce no links."""
    pass


class ExtractionUnavailable(SiteQAError):
    """A single source could not be read. Never fatal to the request."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class DownloadTooLarge(ExtractionUnavailable):
    """A document download exceeded the configured size bound."""
    pass


class AnswerGenerationFailure(SiteQAError):
    """Raised when the language model collaborator fails. Fatal to the request."""
    pass


class ResourceCleanupFailure(SiteQAError):
    """Releasing a temporary file or browser session failed. Logged, never raised to callers."""
    pass


class ConfigurationError(SiteQAError):
    """Exception raised when configuration validation fails."""
    pass
