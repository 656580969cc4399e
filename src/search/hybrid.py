"""
Hybrid lexical + semantic ranking.

composite = lexical_weight * lexical + semantic_weight * semantic
(defaults 0.3 / 0.7). The lexical score is 1.0 when the query and the
title contain one another (case-insensitive), else 0.0.

An item qualifies when semantic >= threshold or lexical == 1. When nothing
qualifies, the most recently created items are returned instead, flagged
with is_fallback=True.
"""

import logging
from typing import List, Optional, Sequence

from core.errors import InputError
from core.models import ContentItem, EmbeddingVector, RankedResult, recency_key
from embed.similarity import cosine

logger = logging.getLogger(__name__)

DEFAULT_LEXICAL_WEIGHT = 0.3
DEFAULT_SEMANTIC_WEIGHT = 0.7


def lexical_score(query: str, title: str) -> float:
    """1.0 if either string contains the other (trimmed, case-folded), else 0.0."""
    q = (query or '').strip().casefold()
    t = (title or '').strip().casefold()
    if not q or not t:
        return 0.0
    return 1.0 if q in t or t in q else 0.0


class HybridSearchRanker:
    """
    Ranks a corpus against a query.

    Args:
        lexical_weight: Weight of the title containment score
        semantic_weight: Weight of the cosine similarity score
    """

    def __init__(
        self,
        lexical_weight: float = DEFAULT_LEXICAL_WEIGHT,
        semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT
    ):
        self.lexical_weight = lexical_weight
        self.semantic_weight = semantic_weight

    def score(self, query_text: str, query_embedding: Optional[EmbeddingVector], item: ContentItem) -> RankedResult:
        lexical = lexical_score(query_text, item.title)
        semantic = None
        if query_embedding is not None and item.embedding is not None:
            semantic = cosine(query_embedding, item.embedding)
        composite = self.lexical_weight * lexical + self.semantic_weight * (semantic or 0.0)
        return RankedResult(
            item=item,
            lexical_score=lexical,
            semantic_score=semantic,
            composite_score=composite,
        )

    def search(
        self,
        query_text: str,
        query_embedding: Optional[EmbeddingVector],
        corpus: Sequence[ContentItem],
        threshold: float,
        limit: int
    ) -> List[RankedResult]:
        """
        Rank corpus items for a query.

        Args:
            query_text: Raw query text for lexical matching
            query_embedding: Query vector (None disables semantic scoring)
            corpus: Items to rank
            threshold: Minimum semantic score for a non-lexical match
            limit: Maximum number of results

        Returns:
            Results by descending composite score, or recency-ordered
            fallback results if nothing qualified

        Raises:
            InputError: If limit is negative
        """
        if limit < 0:
            raise InputError(f"limit must be >= 0, got {limit}")
        if limit == 0 or not corpus:
            return []

        scored = [self.score(query_text, query_embedding, item) for item in corpus]
        qualifying = [
            result for result in scored
            if result.lexical_score == 1.0
            or (result.semantic_score is not None and result.semantic_score >= threshold)
        ]

        if not qualifying:
            logger.warning(
                f"No results above threshold {threshold} for query, "
                f"falling back to {min(limit, len(corpus))} recent items"
            )
            return self.fallback(scored, limit)

        # sorted() is stable, so equal scores keep corpus order
        ranked = sorted(qualifying, key=lambda result: -result.composite_score)
        logger.info(f"Hybrid search: {len(qualifying)} of {len(corpus)} items qualified")
        return ranked[:limit]

    @staticmethod
    def fallback(scored: Sequence[RankedResult], limit: int) -> List[RankedResult]:
        """Newest items first (undated last), tagged as fallback."""
        recent = sorted(scored, key=lambda result: recency_key(result.item), reverse=True)[:limit]
        for result in recent:
            result.is_fallback = True
        return recent
