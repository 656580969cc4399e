"""
Hybrid lexical + semantic search over content batches.
"""

from .hybrid import HybridSearchRanker, lexical_score
from .service import SemanticSearch

__all__ = ['HybridSearchRanker', 'SemanticSearch', 'lexical_score']
