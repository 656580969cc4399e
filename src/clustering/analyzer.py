"""
End-to-end cluster analysis of a content batch.

Single implementation shared by every caller that needs a similarity map
plus labeled clusters for a collection.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, List, Optional, Sequence

from core.config import ClusteringSettings
from core.models import Cluster, ContentItem, recency_key
from embed.similarity import SimilarityMatrix, similarity_matrix

from .kmeans import ClusterEngine, choose_cluster_count
from .labeler import ClusterLabeler

logger = logging.getLogger(__name__)


@dataclass
class ClusterAnalysis:
    """Similarity matrix, clusters and item -> cluster mapping for one batch."""
    similarities: SimilarityMatrix = field(default_factory=SimilarityMatrix)
    item_ids: List[Hashable] = field(default_factory=list)
    clusters: List[Cluster] = field(default_factory=list)
    assignment: Dict[Hashable, int] = field(default_factory=dict)
    k: int = 0
    skipped_ids: List[Hashable] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'similarities': self.similarities.to_dict(),
            'itemIds': list(self.item_ids),
            'itemCount': len(self.item_ids),
            'clusters': [
                {
                    'id': cluster.id,
                    'label': cluster.label,
                    'itemIds': list(cluster.member_ids),
                    'itemCount': cluster.size,
                }
                for cluster in self.clusters
            ],
            'itemClusters': dict(self.assignment),
            'k': self.k,
        }


def make_labels_unique(clusters: Sequence[Cluster]) -> None:
    """Suffix repeated labels (case-insensitive) with " 2", " 3", ..."""
    used = set()
    for cluster in clusters:
        label = cluster.label
        if label.lower() in used:
            counter = 2
            while f"{label} {counter}".lower() in used:
                counter += 1
            label = f"{label} {counter}"
            logger.debug(f"Duplicate label '{cluster.label}' renamed to '{label}'")
        used.add(label.lower())
        cluster.label = label


class ClusterAnalyzer:
    """
    Runs similarity, k-means and labeling over one batch.

    Args:
        engine: ClusterEngine (a fresh unseeded engine if None)
        labeler: ClusterLabeler (fallback-only labels if None)
        settings: Clustering settings (defaults if None)
    """

    def __init__(
        self,
        engine: Optional[ClusterEngine] = None,
        labeler: Optional[ClusterLabeler] = None,
        settings: Optional[ClusteringSettings] = None
    ):
        self.settings = settings or ClusteringSettings()
        self.engine = engine or ClusterEngine(random_state=self.settings.random_seed)
        self.labeler = labeler or ClusterLabeler(sample_size=self.settings.label_samples)

    def select_items(self, items: Sequence[ContentItem]) -> tuple[List[ContentItem], List[Hashable]]:
        """
        Keep the most recent embedded items that share the batch's dominant
        dimensionality.

        Returns:
            Tuple of (selected items, skipped item ids)
        """
        embedded = [item for item in items if item.embedding is not None]
        skipped = [item.id for item in items if item.embedding is None]
        if skipped:
            logger.warning(f"{len(skipped)} items have no embedding and are not clustered")

        if len(embedded) > self.settings.max_items:
            # sorted() is stable, so undated items keep their input order
            ordered = sorted(embedded, key=recency_key, reverse=True)
            embedded = ordered[:self.settings.max_items]
            skipped.extend(item.id for item in ordered[self.settings.max_items:])
            logger.info(f"Limiting analysis to the {self.settings.max_items} most recent items")

        if embedded:
            dims = Counter(item.dimensions for item in embedded)
            dominant, _ = dims.most_common(1)[0]
            if len(dims) > 1:
                outliers = [item for item in embedded if item.dimensions != dominant]
                logger.warning(
                    f"Dropping {len(outliers)} items whose embedding dimensions differ from {dominant}"
                )
                skipped.extend(item.id for item in outliers)
                embedded = [item for item in embedded if item.dimensions == dominant]

        return embedded, skipped

    def analyze(
        self,
        items: Sequence[ContentItem],
        k: Optional[int] = None,
        with_labels: bool = True
    ) -> ClusterAnalysis:
        """
        Cluster a batch and label the clusters.

        Args:
            items: Content batch (items without embeddings are skipped)
            k: Cluster count; chosen by the count policy when None
            with_labels: Ask the labeler for labels (otherwise fallback labels)

        Raises:
            InputError: If an explicit k is invalid for the batch
        """
        started = datetime.now()
        selected, skipped = self.select_items(items)

        if not selected:
            logger.info("No embedded items, returning empty analysis")
            return ClusterAnalysis(skipped_ids=skipped)

        similarities = similarity_matrix(selected)

        if k is None:
            s = self.settings
            k = choose_cluster_count(len(selected), s.min_clusters, s.max_clusters, s.items_per_cluster)
        logger.info(f"Clustering {len(selected)} items into k={k} clusters")

        result = self.engine.kmeans(selected, k, self.settings.max_iterations)

        clusters = []
        for index in sorted(set(result.assignment.values())):
            clusters.append(Cluster(
                id=index,
                member_ids=result.members(index),
                centroid=result.centroids[index],
            ))

        labeler = self.labeler if with_labels else ClusterLabeler(generator=None)
        labeler.label_all(clusters, selected)
        make_labels_unique(clusters)

        elapsed = (datetime.now() - started).total_seconds()
        logger.info(f"Cluster analysis complete: {len(clusters)} clusters in {elapsed:.2f}s")

        return ClusterAnalysis(
            similarities=similarities,
            item_ids=[item.id for item in selected],
            clusters=clusters,
            assignment=dict(result.assignment),
            k=k,
            skipped_ids=skipped,
        )
