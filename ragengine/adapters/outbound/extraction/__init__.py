"""Text extraction adapters."""

from .document_extractor import DocumentExtractor
from .optical_extractor import PAGE_BREAK, OpticalExtractor, TesseractEngine

__all__ = ["DocumentExtractor", "OpticalExtractor", "TesseractEngine", "PAGE_BREAK"]
