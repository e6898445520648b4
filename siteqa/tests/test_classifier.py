"""
Tests for webpage/document link classification.
"""

from unittest.mock import Mock

import pytest
import requests

from siteqa.extractors.classifier import LinkClassifier
from siteqa.models import LinkKind
from siteqa.utils.validation import ClassificationConfig


def _head_response(content_type):
    response = Mock()
    response.headers = {'Content-Type': content_type}
    return response


class TestLinkClassifier:

    @pytest.mark.parametrize("url", [
        "https://example.edu/docs/fees.pdf",
        "https://example.edu/docs/FEES.PDF",
        "https://example.edu/docs/fees.pdf?download=1",
    ])
    def test_pdf_suffix_is_document(self, url):
        session = Mock()
        classifier = LinkClassifier(ClassificationConfig(probe_content_type=False), session=session)

        assert classifier.classify(url) == LinkKind.DOCUMENT
        session.head.assert_not_called()

    def test_without_head_request_plain_path_is_webpage(self):
        session = Mock()
        classifier = LinkClassifier(ClassificationConfig(probe_content_type=False), session=session)

        assert classifier.classify("https://example.edu/download?id=7") == LinkKind.WEBPAGE
        session.head.assert_not_called()

    def test_pdf_content_type_is_document(self):
        session = Mock()
        session.head.return_value = _head_response('application/pdf; charset=binary')
        classifier = LinkClassifier(ClassificationConfig(probe_timeout=3), session=session)

        assert classifier.classify("https://example.edu/download?id=7") == LinkKind.DOCUMENT
        session.head.assert_called_once_with(
            "https://example.edu/download?id=7", allow_redirects=True, timeout=3
        )

    def test_html_content_type_is_webpage(self):
        session = Mock()
        session.head.return_value = _head_response('text/html; charset=utf-8')
        classifier = LinkClassifier(ClassificationConfig(), session=session)

        assert classifier.classify("https://example.edu/en/fees") == LinkKind.WEBPAGE

    def test_failed_head_request_on_plain_path_is_webpage(self):
        session = Mock()
        session.head.side_effect = requests.ConnectionError("refused")
        classifier = LinkClassifier(ClassificationConfig(), session=session)

        assert classifier.classify("https://example.edu/en/fees") == LinkKind.WEBPAGE

    def test_custom_document_suffixes(self):
        classifier = LinkClassifier(
            ClassificationConfig(probe_content_type=False, document_suffixes=['.pdf', '.PDFX']),
            session=Mock(),
        )

        assert classifier.classify("https://example.edu/a.pdfx") == LinkKind.DOCUMENT

    def test_html_served_under_pdf_suffix_is_webpage(self):
        session = Mock()
        session.head.return_value = _head_response('text/html; charset=utf-8')
        classifier = LinkClassifier(ClassificationConfig(), session=session)

        assert classifier.classify("https://example.edu/viewer/fees.pdf") == LinkKind.WEBPAGE
        session.head.assert_called_once()

    def test_failed_head_request_falls_back_to_suffix(self):
        session = Mock()
        session.head.side_effect = requests.Timeout("slow")
        classifier = LinkClassifier(ClassificationConfig(), session=session)

        assert classifier.classify("https://example.edu/docs/fees.pdf") == LinkKind.DOCUMENT

    def test_unknown_content_type_falls_back_to_suffix(self):
        session = Mock()
        session.head.return_value = _head_response('application/octet-stream')
        classifier = LinkClassifier(ClassificationConfig(), session=session)

        assert classifier.classify("https://example.edu/docs/fees.pdf") == LinkKind.DOCUMENT
        assert classifier.classify("https://example.edu/download?id=7") == LinkKind.WEBPAGE
