"""
Query-side search: resolve the query embedding through the shared cache,
then rank the supplied corpus.
"""

import logging
from typing import List, Optional, Sequence

from core.config import SearchSettings
from core.errors import InputError
from core.models import ContentItem, RankedResult
from embed.cache import VectorCache

from .hybrid import HybridSearchRanker

logger = logging.getLogger(__name__)


class SemanticSearch:
    """
    Hybrid search over an in-memory corpus.

    Embedding Provider failures propagate to the caller as ProviderError.

    Args:
        cache: Query embedding cache (owns the Embedding Provider)
        settings: Search defaults and score weights
    """

    def __init__(self, cache: VectorCache, settings: Optional[SearchSettings] = None):
        self.cache = cache
        self.settings = settings or SearchSettings()
        self.ranker = HybridSearchRanker(
            lexical_weight=self.settings.lexical_weight,
            semantic_weight=self.settings.semantic_weight,
        )

    def search(
        self,
        query_text: str,
        corpus: Sequence[ContentItem],
        threshold: Optional[float] = None,
        limit: Optional[int] = None
    ) -> List[RankedResult]:
        """
        Raises:
            InputError: If the query is blank or limit is negative
            ProviderError: If the query cannot be embedded
        """
        if not query_text or not query_text.strip():
            raise InputError("Search query must not be blank")

        threshold = self.settings.similarity_threshold if threshold is None else threshold
        limit = self.settings.limit if limit is None else limit

        logger.info(f"Searching {len(corpus)} items (threshold={threshold}, limit={limit})")
        query_embedding = self.cache.resolve(query_text)
        return self.ranker.search(query_text, query_embedding, corpus, threshold, limit)
