"""
Semantic clustering of content batches.

Groups embedded items into themes with K-Means and names each theme from
a sample of its member titles.
"""

from .analyzer import ClusterAnalysis, ClusterAnalyzer
from .kmeans import ClusterEngine, choose_cluster_count
from .labeler import ClusterLabeler, LabelGenerator, LLMLabelGenerator

__all__ = [
    'ClusterAnalysis',
    'ClusterAnalyzer',
    'ClusterEngine',
    'ClusterLabeler',
    'LLMLabelGenerator',
    'LabelGenerator',
    'choose_cluster_count',
]
