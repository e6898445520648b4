"""
Webpage/document classification for candidate links.

When content-type probing is enabled, a HEAD request asks the server what the
link serves, and a PDF or HTML content type decides the kind whatever the path
says. Otherwise a link is a document when its path ends in a known document
suffix.
"""

import logging
from typing import Optional

import requests

from ..models import LinkKind
from ..utils.core import url_suffix
from ..utils.validation import ClassificationConfig

logger = logging.getLogger(__name__)

DOCUMENT_CONTENT_TYPES = ('application/pdf', 'application/x-pdf')
WEBPAGE_CONTENT_TYPES = ('text/html', 'application/xhtml+xml')


class LinkClassifier:
    """Decide whether a link is read by rendering it or by downloading it."""

    def __init__(self, config: Optional[ClassificationConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or ClassificationConfig()
        self.session = session or requests.Session()
        self.document_suffixes = {suffix.lower() for suffix in self.config.document_suffixes}

    def classify(self, url: str) -> LinkKind:
        """
        Classify ``url``.

        Args:
            url: Absolute link on the restricted domain

        Returns:
            LinkKind.DOCUMENT or LinkKind.WEBPAGE
        """
        if self.config.probe_content_type:
            content_type = self._content_type(url)
            if content_type in DOCUMENT_CONTENT_TYPES:
                logger.info(f"{url} served as {content_type}, treating as document")
                return LinkKind.DOCUMENT
            if content_type in WEBPAGE_CONTENT_TYPES:
                return LinkKind.WEBPAGE

        if url_suffix(url) in self.document_suffixes:
            return LinkKind.DOCUMENT
        return LinkKind.WEBPAGE

    def _content_type(self, url: str) -> str:
        """Media type reported by a HEAD request, or "" when the request fails."""
        try:
            response = self.session.head(url, allow_redirects=True, timeout=self.config.probe_timeout)
        except requests.RequestException as e:
            logger.debug(f"Content-type probe failed for {url}: {e}")
            return ""
        return response.headers.get('Content-Type', '').split(';')[0].strip().lower()
