"""Heuristic re-ranking for semantic retrieval.

Scores each candidate with cheap lexical and structural signals and blends
that score with the vector similarity. The signals come from the semantic
chunker when present and are recomputed from the passage text otherwise.
"""

import logging

from ..domain import SearchResult, StructuralSignals
from ..domain.utils import has_digit_run, has_name_bigram, word_count

logger = logging.getLogger(__name__)


class HeuristicReranker:
    """Re-ranks search results by blending similarity with heuristic signals.

    The heuristic score is capped at 1.0 and built from:
    - 0.5 when the whole query appears verbatim (case-insensitive)
    - up to 0.3 for the fraction of query words found inside passage words
    - 0.1 when both query and passage contain a question mark
    - 0.1 when both contain a digit run
    - 0.1 when the passage has more than 50 words
    """

    SIMILARITY_WEIGHT = 0.7
    HEURISTIC_WEIGHT = 0.3
    SUBSTANTIAL_WORD_COUNT = 50

    def score(self, query: str, result: SearchResult) -> float:
        """Compute the heuristic score of one candidate for a query."""
        text = result.passage.text
        content = text.lower()
        query_lower = query.lower().strip()
        query_words = query_lower.split()
        if not query_words:
            return 0.0

        score = 0.0
        if query_lower in content:
            score += 0.5

        content_words = content.split()
        common = [w for w in query_words if any(w in c for c in content_words)]
        score += (len(common) / len(query_words)) * 0.3

        signals = result.passage.signals or self._signals(text)
        if signals.has_questions and "?" in query:
            score += 0.1
        if signals.has_numbers and has_digit_run(query):
            score += 0.1
        if signals.word_count > self.SUBSTANTIAL_WORD_COUNT:
            score += 0.1

        return min(score, 1.0)

    def rerank(self, query: str, results: list[SearchResult], top_k: int) -> list[SearchResult]:
        """Re-score results and return the best ``top_k``.

        Args:
            query: The original search query.
            results: Candidates from the similarity search.
            top_k: Number of results to keep.

        Returns:
            New SearchResult objects sorted by the blended score, descending.
        """
        if not results:
            return []

        reranked = []
        for result in results:
            heuristic = self.score(query, result)
            reranked.append(
                SearchResult(
                    passage=result.passage,
                    score=self.SIMILARITY_WEIGHT * result.similarity
                    + self.HEURISTIC_WEIGHT * heuristic,
                    similarity=result.similarity,
                    heuristic=heuristic,
                )
            )

        reranked.sort(key=lambda r: r.score, reverse=True)
        logger.debug(
            f"Re-ranked {len(results)} results. "
            f"Top score: {reranked[0].score:.3f} -> {reranked[-1].score:.3f}"
        )
        return reranked[:top_k]

    @staticmethod
    def _signals(text: str) -> StructuralSignals:
        return StructuralSignals(
            has_questions="?" in text,
            has_numbers=has_digit_run(text),
            has_names=has_name_bigram(text),
            word_count=word_count(text),
        )
