"""Text utilities shared by extraction, chunking and ranking.

Text handling contract
----------------------
* Incoming documents have BOM and replacement markers stripped before
  chunking so downstream processing never sees spurious characters.
* Whitespace is only collapsed where a length heuristic needs it; the
  chunker works on the text exactly as extracted.
"""

import re
import unicodedata

_WHITESPACE_RUN = re.compile(r"\s+")
_DIGIT_RUN = re.compile(r"\d+")
_NAME_BIGRAM = re.compile(r"[A-Z][a-z]+ [A-Z][a-z]+")


def normalize_text(text: str, *, unicode_form: str | None = "NFC") -> str:
    """Remove BOM markers and optionally apply Unicode normalization.

    Args:
        text: Input text that may contain BOM or replacement characters.
        unicode_form: Normalization form to apply, or None to skip.

    Returns:
        Cleaned text.
    """
    if not text:
        return ""

    cleaned = text.replace("\ufeff", "").replace("\ufffd", "")
    if unicode_form:
        cleaned = unicodedata.normalize(unicode_form, cleaned)
    return cleaned


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run to one space and trim."""
    return _WHITESPACE_RUN.sub(" ", text or "").strip()


def has_digit_run(text: str) -> bool:
    return bool(_DIGIT_RUN.search(text))


def has_name_bigram(text: str) -> bool:
    """Two consecutive capitalized words, a crude proper-name detector."""
    return bool(_NAME_BIGRAM.search(text))


def word_count(text: str) -> int:
    return len(text.split())
