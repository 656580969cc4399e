"""
K-Means clustering of embedded content items.

Initial centroids are k distinct items picked uniformly at random, so two
runs on the same batch may partition it differently. Pass random_state to
pin the outcome (tests); leave it None in production.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np

from core.errors import InputError
from core.models import ContentItem, KMeansResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 50

RandomState = Union[None, int, np.random.Generator]


def choose_cluster_count(
    n_items: int,
    min_clusters: int = 3,
    max_clusters: int = 7,
    items_per_cluster: int = 7
) -> int:
    """
    Cluster count policy: roughly one cluster per items_per_cluster items,
    clamped to [min_clusters, max_clusters] and never more than n_items.

    >>> choose_cluster_count(14)
    3
    >>> choose_cluster_count(2)
    2
    """
    if n_items <= 0:
        return 0
    k = min(max(min_clusters, n_items // items_per_cluster), max_clusters)
    return min(k, n_items)


class ClusterEngine:
    """
    Lloyd's k-means with Euclidean distance.

    - Assignment ties go to the lowest centroid index.
    - A cluster that loses all members keeps its previous centroid.
    - Iteration stops as soon as an assignment step changes nothing.

    Args:
        random_state: Seed or numpy Generator for centroid initialisation
    """

    def __init__(self, random_state: RandomState = None):
        self.random_state = random_state
        self._rng = np.random.default_rng(random_state)

    def kmeans(
        self,
        items: Sequence[ContentItem],
        k: int,
        max_iterations: int = DEFAULT_MAX_ITERATIONS
    ) -> KMeansResult:
        """
        Partition embedded items into k clusters.

        Items without an embedding are ignored.

        Returns:
            KMeansResult (empty if there are no embedded items)

        Raises:
            InputError: If k < 1, k exceeds the number of embedded items,
                max_iterations < 1, ids repeat or dimensions differ
        """
        embedded = [item for item in items if item.embedding is not None]
        if len(embedded) < len(items):
            logger.warning(f"Ignoring {len(items) - len(embedded)} items without embeddings")

        n = len(embedded)
        if n == 0:
            logger.info("No embedded items to cluster")
            return KMeansResult(converged=True)

        if k < 1:
            raise InputError(f"k must be >= 1, got {k}")
        if k > n:
            raise InputError(f"k={k} exceeds the {n} embedded items available")
        if max_iterations < 1:
            raise InputError(f"max_iterations must be >= 1, got {max_iterations}")

        ids = [item.id for item in embedded]
        if len(set(ids)) != n:
            raise InputError("Item ids must be unique within a clustering batch")

        dims = {item.dimensions for item in embedded}
        if len(dims) != 1:
            raise InputError(f"All embeddings must share one dimensionality, got {sorted(dims)}")

        vectors = np.vstack([item.embedding for item in embedded])
        logger.info(f"Running K-Means on {n} items (k={k}, max_iterations={max_iterations})")

        centroids = self._initial_centroids(vectors, k)
        labels = np.full(n, -1, dtype=int)
        converged = False
        iterations = 0

        for iteration in range(max_iterations):
            iterations = iteration + 1
            new_labels = self.assign(vectors, centroids)
            changed = int(np.sum(new_labels != labels))
            if changed == 0:
                converged = True
                break

            labels = new_labels
            logger.debug(f"Iteration {iterations}: {changed} items reassigned")
            self._update_centroids(vectors, labels, centroids)

        if converged:
            logger.info(f"K-Means converged after {iterations} iterations")
        else:
            logger.info(f"K-Means stopped at max_iterations={max_iterations} without converging")

        result = KMeansResult(
            assignment={item_id: int(label) for item_id, label in zip(ids, labels)},
            centroids=[self._freeze(c) for c in centroids],
            iterations=iterations,
            converged=converged,
        )
        logger.info(f"K-Means produced {result.cluster_count} non-empty clusters")
        return result

    @staticmethod
    def assign(vectors: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        """Index of the nearest centroid for each row (first index wins ties)."""
        vectors = np.asarray(vectors, dtype=np.float64)
        centroids = np.asarray(centroids, dtype=np.float64)
        distances = np.linalg.norm(vectors[:, np.newaxis, :] - centroids[np.newaxis, :, :], axis=2)
        return np.argmin(distances, axis=1)

    def _initial_centroids(self, vectors: np.ndarray, k: int) -> np.ndarray:
        # Rejection sampling of k distinct indices
        n = vectors.shape[0]
        chosen = []
        seen = set()
        while len(chosen) < k:
            index = int(self._rng.integers(n))
            if index not in seen:
                seen.add(index)
                chosen.append(index)
        logger.debug(f"Initial centroid items: {chosen}")
        return vectors[chosen].copy()

    @staticmethod
    def _update_centroids(vectors: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> None:
        for j in range(centroids.shape[0]):
            members = vectors[labels == j]
            if len(members) == 0:
                logger.debug(f"Cluster {j} is empty, keeping its previous centroid")
                continue
            centroids[j] = members.mean(axis=0)

    @staticmethod
    def _freeze(vector: np.ndarray) -> np.ndarray:
        frozen = np.array(vector, dtype=np.float64)
        frozen.flags.writeable = False
        return frozen
