"""Source artifacts handed to the extractor and registry records."""

from dataclasses import dataclass
from datetime import datetime

from .passage import ExtractionMethod, SourceKind

PDF_CONTENT_TYPE = "application/pdf"
TEXT_CONTENT_TYPE = "text/plain"


@dataclass
class TextArtifact:
    """An uploaded plain-text file."""

    filename: str
    content: str


@dataclass
class PdfArtifact:
    """An uploaded PDF, as raw bytes."""

    filename: str
    data: bytes


@dataclass
class WebPageArtifact:
    """A web page to scrape.

    ``html`` is set when a collaborator already fetched the markup;
    otherwise the extractor fetches ``url`` itself.
    """

    url: str
    html: str | None = None


Artifact = TextArtifact | PdfArtifact | WebPageArtifact


@dataclass
class Upload:
    """A raw uploaded file as received from the upload collaborator."""

    filename: str
    content_type: str
    data: bytes

    def to_artifact(self) -> TextArtifact | PdfArtifact | None:
        """Map the upload to an extractor artifact, or None if unsupported."""
        content_type = self.content_type.split(";")[0].strip().lower()
        if content_type == PDF_CONTENT_TYPE:
            return PdfArtifact(self.filename, self.data)
        if content_type == TEXT_CONTENT_TYPE:
            return TextArtifact(self.filename, self.data.decode("utf-8", errors="replace"))
        return None


@dataclass
class ExtractionResult:
    """Plain text produced from an artifact.

    Attributes:
        text: Extracted text.
        method: Direct or optical; ``None`` for non-PDF sources.
        confidence: Average OCR confidence, only for optical extraction.
    """

    text: str
    method: ExtractionMethod | None = None
    confidence: float | None = None


@dataclass
class SourceRecord:
    """Registry entry for one ingested source of one tenant."""

    tenant_id: str
    source_id: str
    source_kind: SourceKind
    chunk_count: int
    last_ingested_at: datetime
