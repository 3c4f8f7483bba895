"""OCR fallback for PDFs without a usable text layer.

Each page is rasterized to a PNG inside a private temporary directory and
recognized with Tesseract, in page order. The directory, the PDF copy in it,
every page image and the engine handle are released when the extraction
ends, whether it succeeds or fails.
"""

import logging
import tempfile
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any

import pytesseract
from pdf2image import convert_from_path
from PIL import Image

from ....core.domain import ExtractionMethod, ExtractionResult
from ....core.domain.exceptions import ExtractionFailedError, RagEngineError
from ....core.ports.extraction_port import OpticalExtractorPort

logger = logging.getLogger(__name__)

PAGE_BREAK = "\n\n--- Page Break ---\n\n"


class TesseractEngine:
    """Handle on the Tesseract OCR engine.

    Verifies the engine is installed on entry and refuses work once closed.
    """

    def __init__(self, language: str = "eng", timeout: int = 0) -> None:
        self.language = language
        self.timeout = timeout
        self.closed = True

    def __enter__(self) -> "TesseractEngine":
        version = pytesseract.get_tesseract_version()
        logger.debug(f"Tesseract {version} ready ({self.language})")
        self.closed = False
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        self.closed = True

    def recognize(self, image_path: Path) -> tuple[str, float]:
        """Recognize one page image.

        Returns:
            The page text, lines in reading order, and the mean word
            confidence (0 when nothing was recognized).
        """
        if self.closed:
            raise RuntimeError("Tesseract engine is closed")

        with Image.open(image_path) as image:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                output_type=pytesseract.Output.DICT,
                timeout=self.timeout,
            )

        lines: dict[tuple[int, int, int], list[str]] = {}
        confidences: list[float] = []
        for i, word in enumerate(data.get("text", [])):
            confidence = float(data["conf"][i])
            if not word or not word.strip() or confidence < 0:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word.strip())
            confidences.append(confidence)

        text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
        mean = sum(confidences) / len(confidences) if confidences else 0.0
        return text, mean


class OpticalExtractor(OpticalExtractorPort):
    """Rasterizes PDF pages and runs Tesseract over them."""

    def __init__(
        self,
        dpi: int = 300,
        language: str = "eng",
        timeout: int = 120,
        temp_dir: str | Path | None = None,
    ) -> None:
        """Initialize the OCR extractor.

        Args:
            dpi: Rasterization resolution.
            language: Tesseract language code.
            timeout: Seconds allowed for rasterizing and for each page's OCR.
            temp_dir: Parent for the per-extraction working directory.
        """
        self.dpi = dpi
        self.language = language
        self.timeout = timeout
        self.temp_dir = str(temp_dir) if temp_dir else None

    @contextmanager
    def _session(self) -> Iterator[tuple[Path, TesseractEngine]]:
        """Working directory plus engine handle, both released on exit."""
        with ExitStack() as stack:
            workdir = Path(stack.enter_context(tempfile.TemporaryDirectory(prefix="ocr-", dir=self.temp_dir)))
            engine = stack.enter_context(TesseractEngine(self.language, self.timeout))
            logger.debug(f"OCR working directory {workdir}")
            yield workdir, engine
        logger.debug("OCR resources released")

    def extract_pdf(self, data: bytes) -> ExtractionResult:
        """Run OCR over every page of a PDF.

        Raises:
            ExtractionFailedError: If the PDF has no pages, cannot be
                rasterized, or any page fails to recognize.
        """
        try:
            with self._session() as (workdir, engine):
                source = workdir / "source.pdf"
                source.write_bytes(data)

                pages = convert_from_path(
                    str(source),
                    dpi=self.dpi,
                    output_folder=str(workdir),
                    fmt="png",
                    output_file="page",
                    paths_only=True,
                    timeout=self.timeout,
                )
                if not pages:
                    raise ExtractionFailedError("PDF has no pages to recognize")

                texts: list[str] = []
                confidences: list[float] = []
                for number, page_path in enumerate(sorted(pages), start=1):
                    logger.debug(f"OCR page {number}/{len(pages)}")
                    text, confidence = engine.recognize(Path(page_path))
                    texts.append(text)
                    confidences.append(confidence)
        except RagEngineError:
            raise
        except Exception as e:
            raise ExtractionFailedError(
                "Optical extraction failed", cause=e, context={"dpi": self.dpi}
            ) from e

        average = sum(confidences) / len(confidences)
        logger.info(f"OCR recognized {len(pages)} pages (confidence {average:.1f})")
        return ExtractionResult(
            text=PAGE_BREAK.join(texts),
            method=ExtractionMethod.OPTICAL,
            confidence=min(max(average, 0.0), 100.0),
        )
