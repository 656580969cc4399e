"""
Cosine similarity between embedding vectors.

Pairwise computation is exhaustive (batches are tens to low hundreds of
items); there is no approximate index.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Sequence, Tuple

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from core.models import ContentItem, EmbeddingVector

logger = logging.getLogger(__name__)


def cosine(a: EmbeddingVector, b: EmbeddingVector) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 for mismatched dimensions or a zero-norm vector; both are
    degenerate inputs, not errors.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    if a.shape != b.shape:
        logger.debug(f"Dimension mismatch {a.shape} vs {b.shape}, similarity 0")
        return 0.0

    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        logger.debug("Zero-norm vector, similarity 0")
        return 0.0

    value = float(np.dot(a, b)) / (norm_a * norm_b)
    # Rounding can push identical directions slightly past 1
    return max(-1.0, min(1.0, value))


@dataclass
class SimilarityMatrix:
    """
    Square item x item similarity table.

    Symmetric, with an exact 1.0 on the diagonal (also for zero vectors).
    """
    ids: List[Hashable] = field(default_factory=list)
    values: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))

    def __post_init__(self):
        self._index = {item_id: i for i, item_id in enumerate(self.ids)}

    def __len__(self) -> int:
        return len(self.ids)

    def get(self, a: Hashable, b: Hashable) -> float:
        return float(self.values[self._index[a], self._index[b]])

    def row(self, item_id: Hashable) -> Dict[Hashable, float]:
        i = self._index[item_id]
        return {other: float(self.values[i, j]) for j, other in enumerate(self.ids)}

    def most_similar(self, item_id: Hashable, limit: int = 5) -> List[Tuple[Hashable, float]]:
        """Nearest neighbours of an item, excluding itself, highest first."""
        neighbours = [(other, score) for other, score in self.row(item_id).items() if other != item_id]
        neighbours.sort(key=lambda pair: -pair[1])
        return neighbours[:limit]

    def to_dict(self) -> Dict[Hashable, Dict[Hashable, float]]:
        return {item_id: self.row(item_id) for item_id in self.ids}


def similarity_matrix(items: Sequence[ContentItem]) -> SimilarityMatrix:
    """
    Build the full pairwise similarity matrix for the embedded items.

    Items without an embedding are skipped. Each unordered pair is computed
    once and mirrored, so the result is symmetric by construction.
    """
    embedded = [item for item in items if item.embedding is not None]
    skipped = len(items) - len(embedded)
    if skipped:
        logger.debug(f"Skipping {skipped} items without embeddings")

    ids = [item.id for item in embedded]
    n = len(embedded)
    if n == 0:
        return SimilarityMatrix(ids=[], values=np.zeros((0, 0)))

    dims = {item.dimensions for item in embedded}
    if len(dims) == 1:
        stacked = np.vstack([item.embedding for item in embedded])
        # Zero rows stay zero after sklearn's normalisation, giving similarity 0
        full = np.clip(cosine_similarity(stacked), -1.0, 1.0)
        upper = np.triu(full, k=1)
        values = upper + upper.T
    else:
        logger.warning(f"Mixed embedding dimensions {sorted(dims)}; mismatched pairs score 0")
        values = np.zeros((n, n))
        for i in range(n):
            for j in range(i + 1, n):
                score = cosine(embedded[i].embedding, embedded[j].embedding)
                values[i, j] = score
                values[j, i] = score

    np.fill_diagonal(values, 1.0)
    logger.info(f"Computed {n}x{n} similarity matrix")
    return SimilarityMatrix(ids=ids, values=values)
