"""HTML extractor for rendered pages on the restricted domain.

This module turns a rendered page into a ``ContentSource``: metadata is read
first, non-content regions are stripped, the first sufficiently long main
content region is selected (falling back to the whole body), and the text is
flattened with light structure for headings, tables and lists, then bounded
in length.
"""

import logging
from typing import Dict, Optional

from bs4 import BeautifulSoup

from ..interfaces.base_interfaces import RenderedPageSource
from ..models import ContentSource, LinkKind
from ..utils.core import collapse_whitespace, truncate_text
from ..utils.validation import ExtractionConfig


class HTMLExtractor:
    """Extract text content and metadata from rendered HTML."""

    def __init__(self, config: Optional[ExtractionConfig] = None) -> None:
        """Initialize HTMLExtractor.

        Args:
            config: Extraction section of the validated configuration.
        """
        self.config = config or ExtractionConfig()
        self.logger = logging.getLogger(__name__)

    async def extract(self, page_source: RenderedPageSource, url: str) -> Optional[ContentSource]:
        """Render ``url`` in the shared page source and extract its content.

        Args:
            page_source: Rendering session for the current request.
            url: Page to load.

        Returns:
            ContentSource, or None when the page could not be rendered.
        """
        try:
            await page_source.navigate(url, timeout=self.config.navigation_timeout)
            html = await page_source.content()
        except Exception as e:
            self.logger.error(f"Content extraction failed for {url}: {e}")
            return None

        source = self.extract_from_html(html, url)
        if source is not None and not source.content:
            # Text drawn by scripts after load is only visible to the live DOM
            try:
                live_text = await page_source.extract_text(self.config.content_selectors + ['body'])
            except Exception as e:
                self.logger.debug(f"Could not read live text for {url}: {e}")
                live_text = ""
            if live_text:
                source = ContentSource(
                    url=source.url,
                    content=truncate_text(collapse_whitespace(live_text), self.config.max_content_length),
                    metadata=source.metadata,
                    timestamp=source.timestamp,
                )
        if source is not None and not source.title:
            # Script-set titles only show up on the live document
            try:
                title = await page_source.title()
            except Exception as e:
                self.logger.debug(f"Could not read live title for {url}: {e}")
                title = ""
            if title:
                source = ContentSource(
                    url=source.url,
                    content=source.content,
                    metadata={**source.metadata, 'title': title.strip()},
                    timestamp=source.timestamp,
                )
        return source

    def extract_from_html(self, html: str, url: str) -> Optional[ContentSource]:
        """Extract meaningful text content from an HTML document.

        Args:
            html: Rendered HTML markup.
            url: Address the markup was loaded from.

        Returns:
            ContentSource with title, description and keywords metadata.
            Returns None if parsing fails.
        """
        try:
            soup = BeautifulSoup(html or "", 'html.parser')
            metadata = self._extract_metadata(soup)

            # Remove non-content elements
            for selector in self.config.remove_selectors:
                for element in soup.select(selector):
                    element.decompose()

            main_content = ""
            for selector in self.config.content_selectors:
                content_elem = soup.select_one(selector)
                if content_elem is None:
                    continue
                if len(collapse_whitespace(content_elem.get_text(' '))) > self.config.min_region_length:
                    main_content = self._extract_formatted_text(content_elem)
                    break

            # If no main content found, extract from body
            if not main_content:
                body = soup.find('body') or soup
                main_content = self._extract_formatted_text(body)

            content = truncate_text(collapse_whitespace(main_content), self.config.max_content_length)

            return ContentSource(url=url, content=content, metadata=metadata)

        except Exception as e:
            self.logger.error(f"Error parsing HTML from {url}: {e}")
            return None

    def _extract_metadata(self, soup: BeautifulSoup) -> Dict[str, str]:
        """Read title, description and keywords before any stripping happens."""
        title = soup.find('title')
        title_text = title.get_text().strip() if title else ""

        meta_desc = soup.find('meta', attrs={'name': 'description'})
        description = meta_desc.get('content', '') if meta_desc else ""

        meta_keywords = soup.find('meta', attrs={'name': 'keywords'})
        keywords = meta_keywords.get('content', '') if meta_keywords else ""

        return {
            'title': title_text,
            'description': description.strip(),
            'keywords': keywords.strip(),
            'type': LinkKind.WEBPAGE.value,
        }

    def _extract_formatted_text(self, element: BeautifulSoup) -> str:
        """Extract text in reading order with light markup for headings, tables and lists.

        Each heading, table and list is replaced in place by its formatted
        text, so it stays next to the content around it.

        Args:
            element: BeautifulSoup element to extract text from.

        Returns:
            Formatted text string with preserved structure.
        """
        structural = list(element.find_all(['h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'table', 'ul', 'ol']))

        for child in structural:
            # Nested inside a table or list that was already replaced
            if not any(parent is element for parent in child.parents):
                continue

            if child.name in ['h1', 'h2', 'h3', 'h4', 'h5', 'h6']:
                level = int(child.name[1])
                heading_text = child.get_text(' ', strip=True)
                formatted = f"{'#' * level} {heading_text}" if heading_text else ""
            elif child.name == 'table':
                rows = []
                for row in child.find_all('tr'):
                    cells = [cell.get_text(' ', strip=True) for cell in row.find_all(['td', 'th'])]
                    if any(cells):
                        rows.append(' | '.join(cells))
                formatted = '\n'.join(rows)
            else:
                items = []
                for li in child.find_all('li', recursive=False):
                    item_text = li.get_text(' ', strip=True)
                    if item_text:
                        prefix = '• ' if child.name == 'ul' else f"{len(items) + 1}. "
                        items.append(f"{prefix}{item_text}")
                formatted = '\n'.join(items)

            child.replace_with(formatted)

        return element.get_text(separator=' ', strip=True)
