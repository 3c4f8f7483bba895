"""Stored payload models.

Each passage is persisted with a strongly-typed metadata record chosen by
its source kind. Unknown keys are rejected when a payload is read back, so
free-form metadata never leaks through the index boundary.
"""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .passage import ExtractionMethod, Passage, SourceKind, StructuralSignals


class SignalsPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    has_questions: bool
    has_numbers: bool
    has_names: bool
    word_count: int = Field(ge=0)


class _BasePayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tenant_id: str = Field(min_length=1)
    source_id: str
    sequence_index: int = Field(ge=0)
    text: str
    created_at: datetime
    embedding_model: str | None = None
    signals: SignalsPayload | None = None


class UploadPayload(_BasePayload):
    """Metadata for passages from uploaded files (text or PDF)."""

    source_kind: Literal["upload"] = "upload"
    extraction_method: ExtractionMethod | None = None
    optical_confidence: float | None = Field(default=None, ge=0.0, le=100.0)


class WebPayload(_BasePayload):
    """Metadata for passages from scraped web pages."""

    source_kind: Literal["web"] = "web"


StoredPayload = Annotated[UploadPayload | WebPayload, Field(discriminator="source_kind")]

_payload_adapter: TypeAdapter[UploadPayload | WebPayload] = TypeAdapter(StoredPayload)


def passage_to_payload(passage: Passage, embedding_model: str | None = None) -> dict[str, Any]:
    """Serialize a passage to the dict stored next to its vector.

    Raises:
        ValueError: If the passage has no tenant.
    """
    if not passage.tenant_id:
        raise ValueError("Passage has no tenant_id")

    signals = None
    if passage.signals is not None:
        signals = SignalsPayload(
            has_questions=passage.signals.has_questions,
            has_numbers=passage.signals.has_numbers,
            has_names=passage.signals.has_names,
            word_count=passage.signals.word_count,
        )

    common = {
        "tenant_id": passage.tenant_id,
        "source_id": passage.source_id,
        "sequence_index": passage.sequence_index,
        "text": passage.text,
        "created_at": passage.created_at,
        "embedding_model": embedding_model,
        "signals": signals,
    }
    if passage.source_kind == SourceKind.WEB:
        model: BaseModel = WebPayload(**common)
    else:
        model = UploadPayload(
            **common,
            extraction_method=passage.extraction_method,
            optical_confidence=passage.optical_confidence,
        )
    return model.model_dump(mode="json")


def payload_to_passage(payload: dict[str, Any]) -> Passage:
    """Rebuild a Passage from a stored payload.

    Raises:
        pydantic.ValidationError: If the payload has unknown keys or bad values.
    """
    record = _payload_adapter.validate_python(payload)

    signals = None
    if record.signals is not None:
        signals = StructuralSignals(**record.signals.model_dump())

    extraction_method = None
    optical_confidence = None
    if isinstance(record, UploadPayload):
        extraction_method = record.extraction_method
        optical_confidence = record.optical_confidence

    return Passage(
        text=record.text,
        tenant_id=record.tenant_id,
        source_id=record.source_id,
        source_kind=SourceKind(record.source_kind),
        sequence_index=record.sequence_index,
        created_at=record.created_at,
        extraction_method=extraction_method,
        optical_confidence=optical_confidence,
        signals=signals,
    )
