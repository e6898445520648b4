"""
Tests for the PDF processor: download bound, text-layer quality gate, OCR
fallback and scratch-file cleanup.
"""

import os
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from siteqa.extractors.pdf_processor import PDFProcessor
from siteqa.interfaces.base_interfaces import DownloadTooLarge, ExtractionUnavailable
from siteqa.utils.validation import PDFConfig

URL = "https://example.edu/docs/fees.pdf"


def _response(chunks=(b"%PDF-1.7 body",), headers=None):
    response = MagicMock()
    response.__enter__.return_value = response
    response.headers = headers or {}
    response.iter_content.return_value = list(chunks)
    return response


def _document(page_texts):
    """PyMuPDF document stand-in usable as a context manager."""
    pages = []
    for text in page_texts:
        page = Mock()
        page.get_text.return_value = text
        page.get_pixmap.return_value = Mock()
        pages.append(page)

    doc = MagicMock()
    doc.__enter__.return_value = doc
    doc.page_count = len(pages)
    doc.__iter__.return_value = iter(pages)
    doc.load_page.side_effect = lambda index: pages[index]
    return doc


@pytest.fixture
def scratch(tmp_path):
    return tmp_path


@pytest.fixture
def processor(scratch):
    return PDFProcessor(PDFConfig(temp_dir=str(scratch), min_text_length=100, ocr_max_pages=3))


class TestProcess:

    def test_text_layer_used_when_long_enough(self, processor, scratch):
        text = "Tuition fees for 2025 are listed per faculty. " * 5
        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=_response()), \
                patch('siteqa.extractors.pdf_processor.fitz.open', return_value=_document([text])), \
                patch('siteqa.extractors.pdf_processor.pytesseract.image_to_string') as ocr:
            source = processor.process(URL, "fees.pdf")

        assert source.url == URL
        assert source.content == text.strip()
        assert source.metadata == {'title': 'fees.pdf', 'pageCount': 1, 'type': 'pdf', 'ocr': False}
        ocr.assert_not_called()
        assert os.listdir(scratch) == []

    def test_short_text_layer_triggers_ocr(self, processor, scratch):
        short = "Scanned document header only, 40 chars."
        pages = [short, "", "", "", ""]

        def open_document(path):
            return _document(pages)

        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=_response()), \
                patch('siteqa.extractors.pdf_processor.fitz.open', side_effect=open_document), \
                patch('siteqa.extractors.pdf_processor.pytesseract.image_to_string',
                      side_effect=["Page one text", "Page two text", "Page three text"]) as ocr:
            source = processor.process(URL, "fees.pdf")

        assert ocr.call_count == 3
        assert ocr.call_args.kwargs['lang'] == "eng+tur"
        assert "--- Page 1 ---\nPage one text" in source.content
        assert "--- Page 3 ---\nPage three text" in source.content
        assert "Page 4" not in source.content
        assert source.metadata['ocr'] is True
        assert source.metadata['pageCount'] == 5
        assert os.listdir(scratch) == []

    def test_failing_ocr_page_is_skipped(self, processor):
        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=_response()), \
                patch('siteqa.extractors.pdf_processor.fitz.open', side_effect=lambda p: _document(["", ""])), \
                patch('siteqa.extractors.pdf_processor.pytesseract.image_to_string',
                      side_effect=[RuntimeError("tesseract crashed"), "Second page text"]):
            source = processor.process(URL, "fees.pdf")

        assert "Page 1" not in source.content
        assert "--- Page 2 ---\nSecond page text" in source.content

    def test_empty_ocr_keeps_text_layer(self, processor):
        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=_response()), \
                patch('siteqa.extractors.pdf_processor.fitz.open', side_effect=lambda p: _document(["tiny"])), \
                patch('siteqa.extractors.pdf_processor.pytesseract.image_to_string',
                      side_effect=RuntimeError("no tesseract")):
            source = processor.process(URL, "fees.pdf")

        assert source.content == "tiny"
        assert source.metadata['ocr'] is False

    def test_ocr_text_is_length_capped(self, scratch):
        processor = PDFProcessor(PDFConfig(temp_dir=str(scratch), min_text_length=100, ocr_max_pages=2),
                                 max_content_length=20)

        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=_response()), \
                patch('siteqa.extractors.pdf_processor.fitz.open', side_effect=lambda p: _document(["", ""])), \
                patch('siteqa.extractors.pdf_processor.pytesseract.image_to_string',
                      side_effect=["Scholarship deadlines " * 10, "Dormitory fees " * 10]):
            source = processor.process(URL, "scan.pdf")

        assert len(source.content) == 20
        assert source.content.startswith("--- Page 1 ---")
        assert source.metadata['ocr'] is True

    def test_oversized_declared_download_returns_none(self, scratch):
        processor = PDFProcessor(PDFConfig(temp_dir=str(scratch), max_download_bytes=1024))
        response = _response(headers={'Content-Length': '4096'})

        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=response), \
                patch('siteqa.extractors.pdf_processor.fitz.open') as fitz_open:
            assert processor.process(URL, "fees.pdf") is None

        fitz_open.assert_not_called()
        assert os.listdir(scratch) == []

    def test_unparseable_pdf_returns_none(self, processor, scratch):
        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=_response()), \
                patch('siteqa.extractors.pdf_processor.fitz.open', side_effect=RuntimeError("not a PDF")):
            assert processor.process(URL, "fees.pdf") is None

        assert os.listdir(scratch) == []


class TestDownload:

    def test_streamed_size_bound(self, tmp_path):
        processor = PDFProcessor(PDFConfig(max_download_bytes=10))
        response = _response(chunks=[b"123456", b"789012"])

        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=response):
            with pytest.raises(DownloadTooLarge):
                processor.download(URL, tmp_path / "document.pdf")

    def test_http_error_is_extraction_unavailable(self, tmp_path):
        processor = PDFProcessor(PDFConfig())
        response = _response()
        response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")

        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=response):
            with pytest.raises(ExtractionUnavailable):
                processor.download(URL, tmp_path / "document.pdf")

    def test_writes_chunks(self, tmp_path):
        processor = PDFProcessor(PDFConfig(download_timeout=5))
        response = _response(chunks=[b"%PDF", b"", b"-1.7"])
        destination = tmp_path / "document.pdf"

        with patch('siteqa.extractors.pdf_processor.requests.get', return_value=response) as get:
            written = processor.download(URL, destination)

        get.assert_called_once_with(URL, stream=True, timeout=5)
        assert written == 8
        assert destination.read_bytes() == b"%PDF-1.7"
