"""
Query embedding cache and cosine similarity for embedded content.
"""

from .cache import CacheEntry, VectorCache
from .provider import EmbeddingProvider, GeminiEmbeddingProvider
from .similarity import SimilarityMatrix, cosine, similarity_matrix

__all__ = [
    'CacheEntry',
    'EmbeddingProvider',
    'GeminiEmbeddingProvider',
    'SimilarityMatrix',
    'VectorCache',
    'cosine',
    'similarity_matrix',
]
