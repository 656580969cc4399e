"""
Shared data model, error taxonomy and configuration for the semantic
organization engine.
"""

from .errors import InputError, ProviderError, SemanticEngineError
from .models import (
    Cluster,
    ContentItem,
    ContentKind,
    KMeansResult,
    RankedResult,
    load_batch,
    to_vector,
)

__all__ = [
    'Cluster',
    'ContentItem',
    'ContentKind',
    'InputError',
    'KMeansResult',
    'ProviderError',
    'RankedResult',
    'SemanticEngineError',
    'load_batch',
    'to_vector',
]
