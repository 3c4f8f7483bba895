"""Recursive character chunking with exact overlap.

Text is first cut into atomic pieces using a prioritized separator list,
strongest break first. Pieces are then merged greedily into "cores" that
tile the text without gaps, and every passage is its core preceded by the
last ``chunk_overlap`` characters of the previous core. Joining the cores
back together reproduces the input exactly.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..domain import ExtractionMethod, Passage, SourceKind, StructuralSignals
from ..domain.utils import has_digit_run, has_name_bigram, word_count

logger = logging.getLogger(__name__)

# Strongest to weakest; "" means split anywhere
DEFAULT_SEPARATORS: tuple[str, ...] = (
    "\n\n",
    "\n",
    "。",
    "！",
    "？",
    "；",
    "，",
    ".",
    "!",
    "?",
    ";",
    ",",
    " ",
    "",
)

# Paragraph-level breaks first for the semantic variant
SEMANTIC_SEPARATORS: tuple[str, ...] = (
    "\n\n\n",
    "\n\n",
    "\n",
    ".",
    "!",
    "?",
    ";",
    ",",
    " ",
    "",
)


@dataclass(frozen=True)
class ChunkingConfig:
    """Chunker parameters.

    Attributes:
        chunk_size: Maximum characters per passage.
        chunk_overlap: Characters shared by consecutive passages.
        separators: Break points, strongest first.
    """

    chunk_size: int = 1000
    chunk_overlap: int = 200
    separators: tuple[str, ...] = field(default=DEFAULT_SEPARATORS)

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.chunk_overlap < 0:
            raise ValueError("chunk_overlap must not be negative")
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        if not self.separators:
            raise ValueError("separators must not be empty")


SEMANTIC_CHUNKING = ChunkingConfig(
    chunk_size=2000, chunk_overlap=400, separators=SEMANTIC_SEPARATORS
)


@dataclass(frozen=True)
class ChunkSpan:
    """Offsets of one passage within the source text.

    ``text[core_start:end]`` is the passage's own core; ``text[start:end]``
    is the passage including the overlap carried from the previous core.
    """

    start: int
    core_start: int
    end: int


def _split_keeping_separator(segment: str, separator: str) -> list[str]:
    parts = segment.split(separator)
    pieces = [part + separator for part in parts[:-1]]
    pieces.append(parts[-1])
    return [piece for piece in pieces if piece]


def split_pieces(text: str, separators: Sequence[str], max_length: int) -> list[str]:
    """Cut text into ordered pieces of at most ``max_length`` characters.

    Each separator stays attached to the end of the piece before it, so
    ``"".join(split_pieces(...)) == text``. A piece that is still too long
    is split again with the weaker separators; the empty separator cuts at
    fixed character counts. A piece no remaining separator can break is
    returned as is, even when oversized.
    """
    if not text:
        return []

    pieces: list[str] = []
    # Explicit work stack instead of recursion; (segment, first separator to try)
    stack: list[tuple[str, int]] = [(text, 0)]
    while stack:
        segment, level = stack.pop()
        if len(segment) <= max_length:
            pieces.append(segment)
            continue

        found = next(
            (i for i in range(level, len(separators)) if separators[i] == "" or separators[i] in segment),
            None,
        )
        if found is None:
            pieces.append(segment)
            continue

        separator = separators[found]
        if separator == "":
            parts = [segment[i : i + max_length] for i in range(0, len(segment), max_length)]
        else:
            parts = _split_keeping_separator(segment, separator)

        for part in reversed(parts):
            stack.append((part, found + 1))

    return pieces


class Chunker:
    """Splits text into bounded, overlapping passages."""

    def __init__(self, config: ChunkingConfig | None = None):
        self.config = config or ChunkingConfig()

    def plan(self, text: str) -> list[ChunkSpan]:
        """Compute passage offsets for ``text`` without building passages."""
        size = self.config.chunk_size
        overlap = self.config.chunk_overlap

        if not text:
            return []
        if len(text) <= size:
            return [ChunkSpan(0, 0, len(text))]

        pieces = split_pieces(text, self.config.separators, size - overlap)

        spans: list[ChunkSpan] = []
        core_start = 0
        position = 0
        for piece in pieces:
            budget = size if not spans else size - overlap
            if position > core_start and (position - core_start) + len(piece) > budget:
                spans.append(self._span(core_start, position, first=not spans))
                core_start = position
            position += len(piece)
        if position > core_start:
            spans.append(self._span(core_start, position, first=not spans))

        return spans

    def _span(self, core_start: int, core_end: int, first: bool) -> ChunkSpan:
        size = self.config.chunk_size
        overlap = self.config.chunk_overlap
        budget = size if first else size - overlap

        if core_end - core_start > budget:
            # Unbreakable run; carries no overlap so only this passage is oversized
            return ChunkSpan(core_start, core_start, core_end)
        return ChunkSpan(max(0, core_start - overlap), core_start, core_end)

    def split(
        self,
        text: str,
        tenant_id: str | None,
        source_id: str,
        source_kind: SourceKind,
        *,
        extraction_method: ExtractionMethod | None = None,
        optical_confidence: float | None = None,
    ) -> list[Passage]:
        """Split text into ordered passages for one source.

        Args:
            text: Full source text.
            tenant_id: Owner of the passages.
            source_id: Filename or URL the text came from.
            source_kind: Upload or web.
            extraction_method: Recorded on PDF-derived passages.
            optical_confidence: Recorded on OCR-derived passages.

        Returns:
            Passages in document order with contiguous sequence indexes.
        """
        passages: list[Passage] = []
        for span in self.plan(text):
            window = text[span.start : span.end]
            if not window.strip():
                continue
            passages.append(
                Passage(
                    text=window,
                    tenant_id=tenant_id,
                    source_id=source_id,
                    source_kind=source_kind,
                    sequence_index=len(passages),
                    extraction_method=extraction_method,
                    optical_confidence=optical_confidence,
                    signals=self._signals(window),
                )
            )

        logger.debug(f"Split {len(text)} chars from {source_id} into {len(passages)} passages")
        return passages

    def _signals(self, text: str) -> StructuralSignals | None:
        return None


class SemanticChunker(Chunker):
    """Larger, paragraph-first chunks tagged with structural signals."""

    def __init__(self, config: ChunkingConfig | None = None):
        super().__init__(config or SEMANTIC_CHUNKING)

    def _signals(self, text: str) -> StructuralSignals:
        return StructuralSignals(
            has_questions="?" in text,
            has_numbers=has_digit_run(text),
            has_names=has_name_bigram(text),
            word_count=word_count(text),
        )
