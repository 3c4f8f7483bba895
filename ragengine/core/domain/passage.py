"""Passage and search result models for the retrieval engine."""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

# Fixed namespace so passage ids are stable across processes and restarts
PASSAGE_NAMESPACE = uuid.UUID("5b0f2a8e-3c1d-4e6f-9a7b-2d8c4e1f6a3b")


class SourceKind(str, Enum):
    """Where a passage's source came from."""

    UPLOAD = "upload"
    WEB = "web"


class ExtractionMethod(str, Enum):
    """How text was obtained from a PDF.

    Attributes:
        DIRECT: Read from the PDF's embedded text layer.
        OPTICAL: Recognized from rasterized page images.
    """

    DIRECT = "direct"
    OPTICAL = "optical"


@dataclass(frozen=True)
class StructuralSignals:
    """Cheap structural features computed by the semantic chunker.

    Used by the heuristic re-ranker to favour passages whose shape
    matches the query (questions, figures, substantial length).
    """

    has_questions: bool
    has_numbers: bool
    has_names: bool
    word_count: int


@dataclass
class Passage:
    """A bounded span of source text stored and embedded as one unit.

    Attributes:
        text: Passage content, never blank.
        tenant_id: Owner of the passage; required before it is written to the index.
        source_id: Logical origin (a filename or a URL).
        source_kind: Upload or web.
        sequence_index: Position within the source's chunk sequence.
        created_at: When the passage was produced.
        extraction_method: Set only for PDF-derived passages.
        optical_confidence: Average OCR confidence (0-100) for optical passages.
        signals: Structural signals, present only for semantic chunks.
    """

    text: str
    tenant_id: str | None
    source_id: str
    source_kind: SourceKind
    sequence_index: int
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    extraction_method: ExtractionMethod | None = None
    optical_confidence: float | None = None
    signals: StructuralSignals | None = None

    def __post_init__(self) -> None:
        if not self.text.strip():
            raise ValueError("Passage text must not be blank")
        if self.sequence_index < 0:
            raise ValueError("sequence_index must be non-negative")
        if self.optical_confidence is not None and not 0.0 <= self.optical_confidence <= 100.0:
            raise ValueError("optical_confidence must be within [0, 100]")

    @property
    def passage_id(self) -> str:
        """Deterministic id, so re-ingesting a source overwrites its passages."""
        key = f"{self.tenant_id}\x1f{self.source_id}\x1f{self.sequence_index}"
        return str(uuid.uuid5(PASSAGE_NAMESPACE, key))


@dataclass
class SearchResult:
    """A retrieved passage with its ranking score.

    Attributes:
        passage: The matched Passage.
        score: Final ranking score (equals ``similarity`` unless re-ranked).
        similarity: Raw similarity reported by the vector index.
        heuristic: Heuristic re-ranking score, when re-ranking ran.
    """

    passage: Passage
    score: float
    similarity: float
    heuristic: float | None = None
