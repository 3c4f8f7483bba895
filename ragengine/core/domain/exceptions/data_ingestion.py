"""Data ingestion exceptions."""

from .base import RagEngineError


class DataIngestionError(RagEngineError):
    """Error while turning a source artifact into passages."""

    error_code = "RAG_DAT_001"


class EmptyContentError(DataIngestionError):
    """Source text is empty or below the minimum usable length."""

    error_code = "RAG_DAT_002"


class FetchError(DataIngestionError):
    """Fetching a web page failed or returned a non-success status."""

    error_code = "RAG_DAT_003"


class ExtractionFailedError(DataIngestionError):
    """The optical extraction path could not process the document.

    Common causes:
    - Malformed or zero-page PDF
    - Poppler or Tesseract binaries are missing
    - Rasterization or recognition timed out
    """

    error_code = "RAG_DAT_004"


class NoExtractableContentError(DataIngestionError):
    """Neither the text layer nor the optical path produced usable text."""

    error_code = "RAG_DAT_005"


class ScannedDocumentError(DataIngestionError):
    """PDF has no usable text layer and the optical path is disabled."""

    error_code = "RAG_DAT_006"
