"""
Headless Chromium rendering through Playwright.

``PlaywrightPageSource`` adapts one Playwright page to the
``RenderedPageSource`` capability used by the retriever and the HTML
extractor. ``open_browser_session`` owns the browser for the length of one
request and closes it on every exit path.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Sequence

from playwright.async_api import Page, async_playwright

from ..interfaces.base_interfaces import RenderedPageSource, ResourceCleanupFailure
from ..models import SearchResult
from ..utils.validation import BrowserConfig

logger = logging.getLogger(__name__)

# Non-anchor matches (e.g. result headings) resolve to their enclosing anchor.
_QUERY_LINKS_JS = """
(elements, limit) => {
    const picked = limit ? elements.slice(0, limit) : elements;
    return picked.map(el => {
        const anchor = el.tagName === 'A' ? el : el.closest('a');
        const text = (el.textContent || '').trim();
        return {
            url: anchor ? anchor.href : null,
            title: text || (anchor ? (anchor.getAttribute('title') || '').trim() : '')
        };
    });
}
"""


def _ms(seconds: float) -> float:
    return seconds * 1000.0


class PlaywrightPageSource(RenderedPageSource):
    """RenderedPageSource backed by a single Playwright page."""

    def __init__(self, page: Page, default_timeout: float = 30.0, wait_until: str = "networkidle"):
        self.page = page
        self.default_timeout = default_timeout
        self.wait_until = wait_until

    async def navigate(self, url: str, timeout: Optional[float] = None) -> None:
        timeout = timeout or self.default_timeout
        logger.debug(f"Navigating to {url}")
        await self.page.goto(url, wait_until=self.wait_until, timeout=_ms(timeout))

    async def wait_for_selector(self, selector: str, timeout: Optional[float] = None) -> None:
        timeout = timeout or self.default_timeout
        await self.page.wait_for_selector(selector, timeout=_ms(timeout))

    async def query_links(self, selectors: str, limit: Optional[int] = None) -> List[SearchResult]:
        raw = await self.page.eval_on_selector_all(selectors, _QUERY_LINKS_JS, limit or 0)
        return [
            SearchResult(url=item['url'], title=item.get('title') or '')
            for item in raw
            if item.get('url')
        ]

    async def extract_text(self, selectors: Sequence[str]) -> str:
        for selector in selectors:
            element = await self.page.query_selector(selector)
            if element is None:
                continue
            text = (await element.inner_text()).strip()
            if text:
                return text
        return ""

    async def content(self) -> str:
        return await self.page.content()

    async def title(self) -> str:
        return await self.page.title()


@asynccontextmanager
async def open_browser_session(config: Optional[BrowserConfig] = None,
                               default_timeout: float = 30.0) -> AsyncIterator[PlaywrightPageSource]:
    """
    Launch Chromium and yield a page source for one request.

    The browser is closed when the block exits, whether it returned or raised.
    A failure while closing is logged, never raised.

    Example:
        async with open_browser_session(settings.browser) as page_source:
            links = await retriever.retrieve(page_source, question)
    """
    config = config or BrowserConfig()

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(
            headless=config.headless,
            args=list(config.launch_args),
            timeout=_ms(default_timeout),
        )
        logger.debug("Browser session opened")
        try:
            context = await browser.new_context(
                locale=config.locale,
                viewport={'width': config.viewport_width, 'height': config.viewport_height},
                extra_http_headers={'Accept-Language': config.accept_language},
            )
            page = await context.new_page()
            yield PlaywrightPageSource(page, default_timeout=default_timeout, wait_until=config.wait_until)
        finally:
            try:
                await browser.close()
                logger.debug("Browser session closed")
            except Exception as e:
                logger.warning(str(ResourceCleanupFailure(f"Failed to close browser: {e}")))
