"""Domain models for the retrieval engine.

Models are organized by domain area:

- passage: Passage, SearchResult and their enums
- index: IndexSpec, IndexState and PassageFilter for the vector index
- source: extractor artifacts, uploads and registry records
- payload: typed metadata stored alongside each vector

All models are re-exported here for convenient importing:

    from ragengine.core.domain import Passage, SearchResult, IndexSpec
"""

from .index import IndexSpec, IndexState, IndexStatus, PassageFilter, StoredHit
from .passage import (
    ExtractionMethod,
    Passage,
    SearchResult,
    SourceKind,
    StructuralSignals,
)
from .payload import UploadPayload, WebPayload, passage_to_payload, payload_to_passage
from .source import (
    Artifact,
    ExtractionResult,
    PdfArtifact,
    SourceRecord,
    TextArtifact,
    Upload,
    WebPageArtifact,
)

__all__ = [
    # Passage models
    "Passage",
    "SearchResult",
    "SourceKind",
    "ExtractionMethod",
    "StructuralSignals",
    # Index models
    "IndexSpec",
    "IndexState",
    "IndexStatus",
    "PassageFilter",
    "StoredHit",
    # Payload models
    "UploadPayload",
    "WebPayload",
    "passage_to_payload",
    "payload_to_passage",
    # Sources
    "Artifact",
    "ExtractionResult",
    "PdfArtifact",
    "SourceRecord",
    "TextArtifact",
    "Upload",
    "WebPageArtifact",
]
