"""
Domain-restricted question answering service.

Answers questions about a single organization using only content retrieved
live from that organization's web domain: scraped search results with a
direct-crawl fallback, rendered HTML pages and PDF documents (with OCR for
scanned files), handed to a local language model.
"""

__version__ = "1.0.0"
