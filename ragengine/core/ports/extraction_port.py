"""Extraction Port Interfaces."""

from abc import ABC, abstractmethod

from ..domain import Artifact, ExtractionResult


class ExtractorPort(ABC):
    """Produces plain text from a source artifact."""

    @abstractmethod
    def extract(self, artifact: Artifact) -> ExtractionResult:
        """Extract text from a text, PDF or web page artifact."""
        ...

    @abstractmethod
    def is_scanned_pdf(self, data: bytes) -> bool:
        """Cheap pre-check: does the PDF lack a usable text layer?"""
        ...


class OpticalExtractorPort(ABC):
    """Recognizes text from rasterized PDF pages."""

    @abstractmethod
    def extract_pdf(self, data: bytes) -> ExtractionResult:
        """Run OCR over every page of a PDF, in page order."""
        ...
