"""Text extraction from plain text, web pages and PDFs."""

import io
import logging
from typing import Any

import requests
from bs4 import BeautifulSoup
from pypdf import PdfReader

from ....core.domain import (
    Artifact,
    ExtractionMethod,
    ExtractionResult,
    PdfArtifact,
    TextArtifact,
    WebPageArtifact,
)
from ....core.domain.exceptions import (
    EmptyContentError,
    FetchError,
    NoExtractableContentError,
    ScannedDocumentError,
    UnsupportedContentTypeError,
)
from ....core.domain.utils import collapse_whitespace, normalize_text
from ....core.ports.extraction_port import ExtractorPort, OpticalExtractorPort

logger = logging.getLogger(__name__)

# Constants
REQUEST_TIMEOUT = 30
MIN_TEXT_LENGTH = 10
MIN_EXTRACTED_LENGTH = 50

NON_CONTENT_TAGS = ["script", "style", "nav", "footer", "header"]
CONTENT_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6"]


class DocumentExtractor(ExtractorPort):
    """Produces plain text from uploaded files and web pages.

    PDFs are read from their text layer first; when that yields too little
    text the optical extractor takes over.
    """

    def __init__(
        self,
        optical: OpticalExtractorPort | None = None,
        session: requests.Session | None = None,
        user_agent: str | None = None,
        request_timeout: int = REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the extractor.

        Args:
            optical: OCR fallback; ``None`` disables optical extraction.
            session: HTTP session for scraping.
            user_agent: Browser identity sent when fetching pages.
            request_timeout: Seconds before a page fetch gives up.
        """
        self.optical = optical
        self.request_timeout = request_timeout
        self.session = session or requests.Session()
        if user_agent:
            self.session.headers.update({"User-Agent": user_agent})

    def __enter__(self) -> "DocumentExtractor":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager and close session."""
        self.close()

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()

    def extract(self, artifact: Artifact) -> ExtractionResult:
        if isinstance(artifact, TextArtifact):
            return self.extract_text(artifact.content, artifact.filename)
        if isinstance(artifact, PdfArtifact):
            return self.extract_pdf(artifact.data, artifact.filename)
        if isinstance(artifact, WebPageArtifact):
            return self.extract_web(artifact.url, artifact.html)
        raise UnsupportedContentTypeError(f"Unsupported artifact: {type(artifact).__name__}")

    def extract_text(self, content: str, filename: str = "") -> ExtractionResult:
        """Pass plain text through.

        Raises:
            EmptyContentError: If the trimmed text is shorter than 10 characters.
        """
        text = normalize_text(content)
        if len(text.strip()) < MIN_TEXT_LENGTH:
            raise EmptyContentError(
                "Text content is empty or too short",
                context={"filename": filename, "length": len(text.strip())},
            )
        return ExtractionResult(text=text)

    def fetch(self, url: str) -> str:
        """Download a page's HTML.

        Raises:
            FetchError: On network failure or a non-success status.
        """
        try:
            response = self.session.get(url, timeout=self.request_timeout)
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {url}", cause=e, context={"url": url}) from e

        if not response.ok:
            raise FetchError(
                f"Failed to fetch {url}: HTTP {response.status_code}",
                context={"url": url, "status": response.status_code},
            )
        return response.text

    def extract_web(self, url: str, html: str | None = None) -> ExtractionResult:
        """Extract readable text from a web page.

        Scripts, styles and page chrome are removed; paragraph and heading
        text is joined with blank lines.

        Raises:
            FetchError: If the page cannot be fetched.
            EmptyContentError: If fewer than 50 characters remain.
        """
        if html is None:
            html = self.fetch(url)

        soup = BeautifulSoup(html, "lxml")
        for tag in soup(NON_CONTENT_TAGS):
            tag.decompose()

        blocks = []
        for element in soup.find_all(CONTENT_TAGS):
            block = element.get_text(" ", strip=True)
            if block:
                blocks.append(block)
        text = normalize_text("\n\n".join(blocks))

        if len(text.strip()) < MIN_EXTRACTED_LENGTH:
            raise EmptyContentError(
                "No meaningful content found on page",
                context={"url": url, "length": len(text.strip())},
            )
        logger.info(f"Scraped {len(text)} characters from {url}")
        return ExtractionResult(text=text)

    @staticmethod
    def read_text_layer(data: bytes) -> str:
        """Read a PDF's embedded text layer, page by page."""
        reader = PdfReader(io.BytesIO(data))
        parts = []
        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                normalized = normalize_text(page_text)
                if normalized.strip():
                    parts.append(normalized)
        return "\n\n".join(parts)

    def extract_pdf(self, data: bytes, filename: str = "") -> ExtractionResult:
        """Extract text from a PDF, falling back to OCR for scanned pages.

        Raises:
            ScannedDocumentError: If the text layer is insufficient and OCR is disabled.
            ExtractionFailedError: If the OCR fallback fails.
            NoExtractableContentError: If neither path yields 10 characters.
        """
        primary = ""
        try:
            primary = self.read_text_layer(data)
        except Exception as e:
            logger.warning(f"Text layer extraction failed for {filename}: {e}")

        if len(primary.strip()) >= MIN_EXTRACTED_LENGTH:
            return ExtractionResult(text=primary, method=ExtractionMethod.DIRECT)

        if self.optical is None:
            raise ScannedDocumentError(
                "PDF has no usable text layer and OCR is disabled",
                context={"filename": filename, "length": len(primary.strip())},
            )

        logger.info(f"Text layer of {filename} yielded {len(primary.strip())} chars, using OCR")
        result = self.optical.extract_pdf(data)
        if len(result.text.strip()) >= MIN_TEXT_LENGTH:
            return result

        if len(primary.strip()) >= MIN_TEXT_LENGTH:
            logger.info(f"OCR found less text than the text layer for {filename}")
            return ExtractionResult(text=primary, method=ExtractionMethod.DIRECT)

        raise NoExtractableContentError(
            "No extractable text found in PDF",
            context={"filename": filename, "ocr_confidence": result.confidence},
        )

    def is_scanned_pdf(self, data: bytes) -> bool:
        """Classify a PDF as scanned when its text layer is nearly empty.

        Any read error counts as scanned; false positives are acceptable.
        """
        try:
            text = self.read_text_layer(data)
        except Exception as e:
            logger.debug(f"Scanned check could not read PDF: {e}")
            return True
        return len(collapse_whitespace(text)) < MIN_EXTRACTED_LENGTH
