"""
Extractors package for turning candidate links into content sources.

- HTML extractor for rendered webpages
- PDF processor with OCR fallback for scanned documents
- Link classifier deciding which of the two reads a link
"""

from .classifier import LinkClassifier
from .html_extractor import HTMLExtractor
from .pdf_processor import PDFProcessor

__all__ = ['LinkClassifier', 'HTMLExtractor', 'PDFProcessor']
