"""
Unit tests for K-Means clustering and the cluster count policy.

Tests convergence, tie-breaking, empty clusters and the randomized
initialisation with pinned seeds.
"""

import unittest
import numpy as np
from unittest.mock import Mock
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from clustering.kmeans import ClusterEngine, choose_cluster_count
from core.errors import InputError
from core.models import ContentItem, to_vector
from embed.similarity import cosine


def make_items(vectors, prefix="item"):
    return [ContentItem(id=f"{prefix}-{i}", embedding=to_vector(v)) for i, v in enumerate(vectors)]


def three_groups(seed=42, per_group=5, dims=32, noise=0.05):
    """Synthetic embeddings around three orthogonal axes."""
    rng = np.random.default_rng(seed)
    groups = []
    for axis in range(3):
        group = rng.normal(size=(per_group, dims)) * noise
        group[:, axis] += 1.0
        groups.append(group)
    return np.vstack(groups)


class TestChooseClusterCount(unittest.TestCase):
    """Test the k = clamp(3, n // 7, 7) policy."""

    def test_minimum_wins_for_fourteen(self):
        self.assertEqual(choose_cluster_count(14), 3)

    def test_scales_between_bounds(self):
        self.assertEqual(choose_cluster_count(35), 5)
        self.assertEqual(choose_cluster_count(42), 6)

    def test_maximum(self):
        self.assertEqual(choose_cluster_count(49), 7)
        self.assertEqual(choose_cluster_count(500), 7)

    def test_small_batches(self):
        self.assertEqual(choose_cluster_count(0), 0)
        self.assertEqual(choose_cluster_count(1), 1)
        self.assertEqual(choose_cluster_count(2), 2)
        self.assertEqual(choose_cluster_count(3), 3)
        self.assertEqual(choose_cluster_count(20), 3)


class TestClusterEngine(unittest.TestCase):
    """Test ClusterEngine.kmeans()."""

    def setUp(self):
        self.vectors = three_groups()
        self.items = make_items(self.vectors)

    def test_separates_groups(self):
        """One initial centroid per group recovers the three groups."""
        engine = ClusterEngine()
        engine._rng = Mock()
        engine._rng.integers.side_effect = [0, 5, 10]
        result = engine.kmeans(self.items, k=3)

        self.assertTrue(result.converged)
        self.assertEqual(len(result.centroids), 3)
        self.assertEqual(len(result.assignment), 15)
        # Recovered groups should be pure, whatever their indices
        for start in (0, 5, 10):
            group_labels = {result.assignment[f"item-{i}"] for i in range(start, start + 5)}
            self.assertEqual(len(group_labels), 1)
        self.assertEqual(result.cluster_count, 3)

    def test_initial_centroids_are_distinct_items(self):
        """Repeated draws are rejected until k distinct items are chosen."""
        engine = ClusterEngine()
        engine._rng = Mock()
        engine._rng.integers.side_effect = [3, 3, 7, 3, 12]
        centroids = engine._initial_centroids(self.vectors, 3)

        self.assertEqual(engine._rng.integers.call_count, 5)
        np.testing.assert_array_equal(centroids, self.vectors[[3, 7, 12]])

    def test_same_seed_same_partition(self):
        first = ClusterEngine(random_state=5).kmeans(self.items, k=4)
        second = ClusterEngine(random_state=5).kmeans(self.items, k=4)
        self.assertEqual(first.assignment, second.assignment)

    def test_assignment_stable_after_convergence(self):
        """One more assignment step with the final centroids changes nothing."""
        result = ClusterEngine(random_state=1).kmeans(self.items, k=3)
        self.assertTrue(result.converged)

        labels = ClusterEngine.assign(self.vectors, np.vstack(result.centroids))
        expected = [result.assignment[item.id] for item in self.items]
        self.assertEqual(list(labels), expected)

    def test_centroids_are_member_means(self):
        result = ClusterEngine(random_state=2).kmeans(self.items, k=3)

        for index in range(3):
            members = [i for i, item in enumerate(self.items) if result.assignment[item.id] == index]
            if members:
                np.testing.assert_allclose(result.centroids[index], self.vectors[members].mean(axis=0))

    def test_ties_go_to_lowest_index(self):
        vectors = np.array([[0.0, 0.0], [2.0, 0.0]])
        centroids = np.array([[1.0, 1.0], [1.0, -1.0]])

        labels = ClusterEngine.assign(vectors, centroids)
        self.assertEqual(list(labels), [0, 0])

    def test_empty_cluster_keeps_centroid(self):
        """Identical embeddings leave the second cluster empty and its centroid unchanged."""
        items = make_items([[1.0, 2.0]] * 4)
        result = ClusterEngine(random_state=0).kmeans(items, k=2)

        self.assertTrue(result.converged)
        self.assertEqual(set(result.assignment.values()), {0})
        np.testing.assert_array_equal(result.centroids[1], [1.0, 2.0])

    def test_never_more_clusters_than_distinct_items(self):
        vectors = [[1.0, 0.0]] * 3 + [[0.0, 1.0]] * 3
        items = make_items(vectors)

        for seed in range(20):
            result = ClusterEngine(random_state=seed).kmeans(items, k=4)
            self.assertLessEqual(result.cluster_count, 2)

    def test_k_equals_n(self):
        result = ClusterEngine(random_state=0).kmeans(self.items[:4], k=4)
        self.assertEqual(result.cluster_count, 4)

    def test_max_iterations_bound(self):
        result = ClusterEngine(random_state=3).kmeans(self.items, k=3, max_iterations=1)
        self.assertEqual(result.iterations, 1)
        self.assertFalse(result.converged)

    def test_unconverged_centroids_are_member_means(self):
        """Centroids are recomputed after the last allowed pass too."""
        items = make_items([[0.0, 0.0], [1.0, 0.0], [10.0, 0.0], [11.0, 0.0]])
        engine = ClusterEngine()
        engine._rng = Mock()
        engine._rng.integers.side_effect = [0, 2]
        result = engine.kmeans(items, k=2, max_iterations=1)

        self.assertFalse(result.converged)
        np.testing.assert_allclose(result.centroids[0], [0.5, 0.0])
        np.testing.assert_allclose(result.centroids[1], [10.5, 0.0])

    def test_empty_batch(self):
        result = ClusterEngine().kmeans([], k=3)

        self.assertEqual(result.assignment, {})
        self.assertEqual(result.centroids, [])

    def test_items_without_embeddings_ignored(self):
        items = self.items + [ContentItem(id="bare", title="No vector")]
        result = ClusterEngine(random_state=0).kmeans(items, k=3)
        self.assertNotIn("bare", result.assignment)

    def test_k_larger_than_n(self):
        with self.assertRaises(InputError):
            ClusterEngine().kmeans(self.items[:2], k=3)

    def test_invalid_k(self):
        with self.assertRaises(InputError):
            ClusterEngine().kmeans(self.items, k=0)

    def test_invalid_max_iterations(self):
        with self.assertRaises(InputError):
            ClusterEngine().kmeans(self.items, k=2, max_iterations=0)

    def test_mixed_dimensions(self):
        items = make_items([[1.0, 0.0], [0.0, 1.0, 0.0]])
        with self.assertRaises(InputError):
            ClusterEngine().kmeans(items, k=1)

    def test_duplicate_ids(self):
        items = [
            ContentItem(id="same", embedding=to_vector([1.0, 0.0])),
            ContentItem(id="same", embedding=to_vector([0.0, 1.0])),
        ]
        with self.assertRaises(InputError):
            ClusterEngine().kmeans(items, k=1)

    def test_input_error_is_value_error(self):
        with self.assertRaises(ValueError):
            ClusterEngine().kmeans(self.items[:1], k=2)


class TestNearDuplicateScenario(unittest.TestCase):
    """21 items, 3 near-identical: they should share a cluster in >= 95% of runs."""

    def setUp(self):
        rng = np.random.default_rng(2024)
        dims = 16
        vectors = []
        for axis in (0, 1):
            group = rng.normal(size=(9, dims)) * 0.05
            group[:, axis] += 1.0
            vectors.extend(group)

        base = np.zeros(dims)
        base[2] = 1.0
        near = [base + rng.normal(size=dims) * 1e-4 for _ in range(3)]
        vectors.extend(near)

        self.items = make_items(vectors[:18], prefix="other") + [
            ContentItem(id=f"near-{i}", title=f"Distinct title {i}", embedding=to_vector(v))
            for i, v in enumerate(near)
        ]
        self.near_ids = ["near-0", "near-1", "near-2"]

    def test_near_duplicates_are_similar(self):
        for a in self.near_ids:
            for b in self.near_ids:
                ea = next(i.embedding for i in self.items if i.id == a)
                eb = next(i.embedding for i in self.items if i.id == b)
                self.assertGreater(cosine(ea, eb), 0.95)

    def test_near_duplicates_cluster_together(self):
        runs = 100
        together = 0
        for seed in range(runs):
            result = ClusterEngine(random_state=seed).kmeans(self.items, k=3)
            if len({result.assignment[i] for i in self.near_ids}) == 1:
                together += 1

        self.assertGreaterEqual(together / runs, 0.95)


if __name__ == '__main__':
    unittest.main()
