"""Write-path orchestration: extract, chunk, index, then record the source."""

import logging
from dataclasses import dataclass, field

from ...common.exception_handler import get_error_code, log_exception
from ..domain import (
    ExtractionMethod,
    ExtractionResult,
    PdfArtifact,
    SourceKind,
    SourceRecord,
    TextArtifact,
    Upload,
    WebPageArtifact,
)
from ..domain.exceptions import (
    EmptyContentError,
    MissingTenantError,
    RagEngineError,
    ScannedDocumentError,
    UnsupportedContentTypeError,
)
from ..ports import DocumentRegistryPort, ExtractorPort
from .chunker import Chunker, SemanticChunker
from .index_manager import IndexManager

logger = logging.getLogger(__name__)

MIN_SEMANTIC_LENGTH = 100


@dataclass
class IngestionResult:
    """Outcome of ingesting one source."""

    source_id: str
    source_kind: SourceKind
    chunk_count: int
    extraction_method: ExtractionMethod | None = None
    confidence: float | None = None


@dataclass
class BatchItemError:
    """A batch item that was skipped or failed, with the reason."""

    source_id: str
    error_code: str
    message: str


@dataclass
class BatchReport:
    """Per-item outcome of a batch ingestion."""

    succeeded: list[IngestionResult] = field(default_factory=list)
    skipped: list[BatchItemError] = field(default_factory=list)
    failed: list[BatchItemError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.skipped) + len(self.failed)

    @property
    def chunk_count(self) -> int:
        return sum(r.chunk_count for r in self.succeeded)


class IngestionService:
    """Turns source artifacts into indexed passages for one tenant at a time.

    The index write always precedes the registry update, so a crash between
    the two leaves an under-counted registry rather than a registry entry
    with no passages behind it.
    """

    def __init__(
        self,
        extractor: ExtractorPort,
        index: IndexManager,
        registry: DocumentRegistryPort,
        chunker: Chunker | None = None,
        semantic_chunker: Chunker | None = None,
        ocr_enabled: bool = True,
    ) -> None:
        self.extractor = extractor
        self.index = index
        self.registry = registry
        self.chunker = chunker or Chunker()
        self.semantic_chunker = semantic_chunker or SemanticChunker()
        self.ocr_enabled = ocr_enabled

    def ingest_text(
        self,
        tenant_id: str,
        source_id: str,
        text: str,
        source_kind: SourceKind = SourceKind.UPLOAD,
    ) -> IngestionResult:
        """Ingest plain text.

        Raises:
            EmptyContentError: If the text is shorter than 10 characters.
        """
        result = self.extractor.extract(TextArtifact(source_id, text))
        return self._ingest(tenant_id, source_id, source_kind, result, self.chunker)

    def ingest_semantic(self, tenant_id: str, source_id: str, text: str) -> IngestionResult:
        """Ingest plain text with the semantic chunker and structural signals."""
        if len(text.strip()) < MIN_SEMANTIC_LENGTH:
            raise EmptyContentError(
                "Document content is too short for semantic processing",
                context={"source_id": source_id, "length": len(text.strip())},
            )
        result = self.extractor.extract(TextArtifact(source_id, text))
        return self._ingest(tenant_id, source_id, SourceKind.UPLOAD, result, self.semantic_chunker)

    def ingest_pdf(self, tenant_id: str, filename: str, data: bytes) -> IngestionResult:
        result = self.extractor.extract(PdfArtifact(filename, data))
        return self._ingest(tenant_id, filename, SourceKind.UPLOAD, result, self.chunker)

    def ingest_url(self, tenant_id: str, url: str, html: str | None = None) -> IngestionResult:
        """Scrape a web page (or parse pre-fetched HTML) and ingest its text."""
        result = self.extractor.extract(WebPageArtifact(url, html))
        return self._ingest(tenant_id, url, SourceKind.WEB, result, self.chunker)

    def ingest_upload(self, tenant_id: str, upload: Upload) -> IngestionResult:
        """Ingest an uploaded file, dispatching on its content type.

        Raises:
            UnsupportedContentTypeError: For anything but text/plain and application/pdf.
        """
        artifact = upload.to_artifact()
        if artifact is None:
            raise UnsupportedContentTypeError(
                f"Unsupported content type: {upload.content_type}",
                context={"filename": upload.filename},
            )
        result = self.extractor.extract(artifact)
        return self._ingest(tenant_id, upload.filename, SourceKind.UPLOAD, result, self.chunker)

    def ingest_batch(self, tenant_id: str, uploads: list[Upload]) -> BatchReport:
        """Ingest several uploads, reporting each one's outcome.

        A failing file is recorded in the report and the batch continues.
        The index is bootstrapped first; a bootstrap failure aborts the batch.
        When OCR is disabled, PDFs without a text layer are skipped up front.
        """
        self._require_tenant(tenant_id)
        self.index.ensure_ready()

        report = BatchReport()
        for upload in uploads:
            artifact = upload.to_artifact()
            if (
                isinstance(artifact, PdfArtifact)
                and not self.ocr_enabled
                and self.extractor.is_scanned_pdf(artifact.data)
            ):
                logger.info(f"Skipping scanned PDF {upload.filename}: OCR is disabled")
                report.skipped.append(
                    BatchItemError(
                        upload.filename,
                        ScannedDocumentError.error_code,
                        "Scanned PDF skipped because OCR is disabled",
                    )
                )
                continue

            try:
                report.succeeded.append(self.ingest_upload(tenant_id, upload))
            except RagEngineError as e:
                log_exception(
                    e,
                    logger,
                    logging.WARNING,
                    extra_context={"tenant_id": tenant_id, "source_id": upload.filename},
                )
                report.failed.append(BatchItemError(upload.filename, get_error_code(e), e.message))

        logger.info(
            f"Batch for tenant {tenant_id}: {len(report.succeeded)} ingested, "
            f"{len(report.skipped)} skipped, {len(report.failed)} failed"
        )
        return report

    def _ingest(
        self,
        tenant_id: str,
        source_id: str,
        source_kind: SourceKind,
        result: ExtractionResult,
        chunker: Chunker,
    ) -> IngestionResult:
        self._require_tenant(tenant_id)

        passages = chunker.split(
            result.text,
            tenant_id,
            source_id,
            source_kind,
            extraction_method=result.method,
            optical_confidence=result.confidence,
        )
        if not passages:
            raise EmptyContentError(
                "No passages produced from source", context={"source_id": source_id}
            )

        self.index.write(passages)
        # A shorter re-ingestion must not leave the previous version's tail behind
        stale = self.index.prune_source(tenant_id, source_id, keep=len(passages))
        if stale:
            logger.info(f"Pruned {stale} stale passages from {source_id}")

        self.registry.upsert(tenant_id, source_id, source_kind, len(passages))
        logger.info(f"Ingested {source_id} for tenant {tenant_id}: {len(passages)} passages")

        return IngestionResult(
            source_id=source_id,
            source_kind=source_kind,
            chunk_count=len(passages),
            extraction_method=result.method,
            confidence=result.confidence,
        )

    @staticmethod
    def _require_tenant(tenant_id: str) -> None:
        if not tenant_id:
            raise MissingTenantError("Ingestion requires a tenant id")

    def delete_source(self, tenant_id: str, source_id: str) -> int:
        """Delete one source's passages, then its registry record."""
        removed = self.index.delete_source(tenant_id, source_id)
        self.registry.remove(tenant_id, source_id)
        return removed

    def delete_sources(self, tenant_id: str, source_ids: list[str]) -> int:
        removed = self.index.delete_sources(tenant_id, source_ids)
        self.registry.remove_many(tenant_id, source_ids)
        return removed

    def delete_kind(self, tenant_id: str, source_kind: SourceKind) -> int:
        removed = self.index.delete_kind(tenant_id, source_kind)
        self.registry.remove_kind(tenant_id, source_kind)
        return removed

    def clear_tenant(self, tenant_id: str) -> int:
        removed = self.index.delete_tenant(tenant_id)
        self.registry.clear_tenant(tenant_id)
        return removed

    def list_sources(self, tenant_id: str) -> list[SourceRecord]:
        self._require_tenant(tenant_id)
        return self.registry.list_sources(tenant_id)

    def stats(self, tenant_id: str) -> dict[str, int]:
        """Passage and source counts for a tenant, split by source kind."""
        self._require_tenant(tenant_id)
        sources = self.registry.list_sources(tenant_id)
        return {
            "passages": self.index.count(tenant_id),
            "upload_passages": self.index.count(tenant_id, SourceKind.UPLOAD),
            "web_passages": self.index.count(tenant_id, SourceKind.WEB),
            "sources": len(sources),
            "upload_sources": sum(1 for s in sources if s.source_kind == SourceKind.UPLOAD),
            "web_sources": sum(1 for s in sources if s.source_kind == SourceKind.WEB),
        }
