"""PDF document processor with OCR fallback.

This module downloads a PDF from the restricted domain into a private
temporary directory, extracts its text layer with PyMuPDF, and when that
yields too little text treats the file as a scanned document: the first
pages are rasterized and read with Tesseract. The temporary directory, with
the PDF and every page image, is removed before ``process`` returns, on every
path.
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Tuple

import fitz  # PyMuPDF
import pytesseract
import requests

from ..interfaces.base_interfaces import DownloadTooLarge, ExtractionUnavailable, ResourceCleanupFailure
from ..models import ContentSource
from ..utils.core import truncate_text
from ..utils.validation import PDFConfig

DOWNLOAD_CHUNK_SIZE = 64 * 1024


class PDFProcessor:
    """Download, read and, if needed, OCR a single PDF document."""

    def __init__(self, config: Optional[PDFConfig] = None, max_content_length: int = 8000) -> None:
        """Initialize PDF processor.

        Args:
            config: PDF section of the validated configuration.
            max_content_length: Character cap applied to the final text.
        """
        self.config = config or PDFConfig()
        self.max_content_length = max_content_length
        self.logger = logging.getLogger(self.__class__.__name__)

    def process(self, url: str, filename: str) -> Optional[ContentSource]:
        """Turn the PDF at ``url`` into a ContentSource.

        Args:
            url: Absolute URL of the document.
            filename: Human-readable name recorded as the source title.

        Returns:
            ContentSource with ``pageCount`` and ``ocr`` metadata, or None when
            the download fails, exceeds the size bound, or the file cannot be parsed.
        """
        work_dir = Path(tempfile.mkdtemp(prefix="siteqa-pdf-", dir=self.config.temp_dir or None))
        try:
            pdf_path = work_dir / "document.pdf"
            self.download(url, pdf_path)

            text, page_count = self.extract_text(pdf_path)
            used_ocr = False

            if len(text.strip()) < self.config.min_text_length:
                self.logger.info(
                    f"Text layer of {url} yields {len(text.strip())} chars, running OCR"
                )
                ocr_text = self.ocr_pages(pdf_path, work_dir)
                if ocr_text.strip():
                    text = ocr_text
                    used_ocr = True
                else:
                    self.logger.warning(f"OCR produced no text for {url}, keeping text layer")

            return ContentSource(
                url=url,
                content=truncate_text(text.strip(), self.max_content_length),
                metadata={
                    'title': filename,
                    'pageCount': page_count,
                    'type': 'pdf',
                    'ocr': used_ocr,
                },
            )

        except ExtractionUnavailable as e:
            self.logger.error(f"PDF unavailable: {e}")
            return None
        except Exception as e:
            self.logger.error(f"PDF processing failed for {url}: {e}")
            return None
        finally:
            self._cleanup(work_dir)

    def download(self, url: str, destination: Path) -> int:
        """Stream ``url`` to ``destination``, enforcing the size bound.

        Returns:
            Number of bytes written.

        Raises:
            DownloadTooLarge: When the declared or streamed size exceeds the bound.
            ExtractionUnavailable: On HTTP or network errors.
        """
        limit = self.config.max_download_bytes
        try:
            with requests.get(url, stream=True, timeout=self.config.download_timeout) as response:
                response.raise_for_status()

                declared = response.headers.get('Content-Length')
                if declared and declared.isdigit() and int(declared) > limit:
                    raise DownloadTooLarge(url, f"declared size {declared} bytes exceeds {limit}")

                written = 0
                with open(destination, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if not chunk:
                            continue
                        written += len(chunk)
                        if written > limit:
                            raise DownloadTooLarge(url, f"download exceeded {limit} bytes")
                        f.write(chunk)

        except requests.RequestException as e:
            raise ExtractionUnavailable(url, f"download failed: {e}") from e

        self.logger.debug(f"Downloaded {written} bytes from {url}")
        return written

    def extract_text(self, pdf_path: Path) -> Tuple[str, int]:
        """Read the text layer of every page.

        Returns:
            Tuple of (concatenated text, page count).
        """
        with fitz.open(str(pdf_path)) as doc:
            page_count = doc.page_count
            text = "\n".join(page.get_text() for page in doc)
        return text, page_count

    def ocr_pages(self, pdf_path: Path, work_dir: Path) -> str:
        """Rasterize the first pages and run Tesseract on each.

        A page that fails to render or recognize is logged and skipped; the
        text of the other pages is still returned.
        """
        zoom = self.config.ocr_dpi / 72.0
        matrix = fitz.Matrix(zoom, zoom)
        parts = []

        with fitz.open(str(pdf_path)) as doc:
            max_pages = min(doc.page_count, self.config.ocr_max_pages)
            for index in range(max_pages):
                page_number = index + 1
                try:
                    image_path = work_dir / f"page-{page_number}.png"
                    pix = doc.load_page(index).get_pixmap(matrix=matrix, alpha=False)
                    pix.save(str(image_path))
                    page_text = pytesseract.image_to_string(str(image_path), lang=self.config.ocr_languages)
                    parts.append(f"\n--- Page {page_number} ---\n{page_text}")
                except Exception as e:
                    self.logger.error(f"OCR failed for page {page_number}: {e}")

        return "".join(parts)

    def _cleanup(self, work_dir: Path) -> None:
        try:
            shutil.rmtree(work_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            failure = ResourceCleanupFailure(f"Could not remove {work_dir}: {e}")
            self.logger.warning(str(failure))
