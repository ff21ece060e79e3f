"""Unit tests for the K-Means engine."""

import logging

import pytest
import numpy as np

from clusterkit.clustering.kmeans import ConvergenceStatus, KMeans
from clusterkit.clustering.metrics import within_cluster_ss
from clusterkit.core.partition import Partition
from clusterkit.exceptions import InvalidInput


class TestKMeans:
    """Test cases for KMeans."""

    def setup_method(self):
        """Set up test fixtures."""
        np.random.seed(42)

        # Three well-separated blobs
        cluster1 = np.random.randn(20, 2) * 0.5 + np.array([0, 0])
        cluster2 = np.random.randn(20, 2) * 0.5 + np.array([10, 10])
        cluster3 = np.random.randn(20, 2) * 0.5 + np.array([-10, 10])

        self.data = np.vstack([cluster1, cluster2, cluster3])
        self.truth = Partition.from_labels(np.repeat([0, 1, 2], 20))
        self.near_centers = np.array([[1.0, 1.0], [9.0, 9.0], [-9.0, 9.0]])

    def test_explicit_init_recovers_blobs(self):
        """Test clustering from starting centroids near the blob centers."""
        result = KMeans(init=self.near_centers).run(self.data)

        assert result.converged
        assert result.status is ConvergenceStatus.CONVERGED
        assert result.partition.same_grouping(self.truth)
        assert result.centroids.shape == (3, 2)
        np.testing.assert_allclose(result.centroids, [[0, 0], [10, 10], [-10, 10]], atol=0.5)

    def test_wss_matches_partition(self):
        """Test that the reported WSS is the WSS of the returned partition."""
        result = KMeans(n_clusters=3, random_state=7).run(self.data)

        assert result.total_within_ss == pytest.approx(
            within_cluster_ss(self.data, result.partition)
        )

    def test_wss_history_non_increasing(self):
        """Test that Lloyd iterations never increase WSS."""
        for seed in range(5):
            result = KMeans(n_clusters=4, random_state=seed, tol=0.0).run(self.data)
            history = np.array(result.wss_history)

            assert len(history) == result.n_iter
            assert np.all(np.diff(history) <= 1e-9)

    def test_k_equals_n(self):
        """Test that k = n converges in one iteration with zero WSS."""
        points = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 2.0], [3.0, 3.0], [5.0, 1.0]])
        result = KMeans(n_clusters=5, tol=0.0).run(points)

        assert result.converged
        assert result.n_iter == 1
        assert result.total_within_ss == 0.0
        assert result.partition.n_clusters == 5
        np.testing.assert_array_equal(result.centroids[result.labels], points)

    def test_single_cluster(self):
        """Test that k = 1 gives the grand mean."""
        result = KMeans(n_clusters=1).run(self.data)

        assert result.partition.n_clusters == 1
        np.testing.assert_allclose(result.centroids[0], self.data.mean(axis=0))

    def test_reproducible_with_seed(self):
        """Test that equal seeds give identical results."""
        first = KMeans(n_clusters=3, random_state=123).run(self.data)
        second = KMeans(n_clusters=3, random_state=123).run(self.data)

        assert first.partition == second.partition
        np.testing.assert_array_equal(first.centroids, second.centroids)
        assert first.wss_history == second.wss_history

    def test_ties_go_to_lowest_cluster(self):
        """Test that an equidistant point joins the lower cluster id."""
        points = np.array([[0.0, 0.0], [2.0, 0.0], [1.0, 0.0]])
        result = KMeans(init=[[0.0, 0.0], [2.0, 0.0]]).run(points)

        assert result.labels.tolist() == [0, 1, 0]

    def test_empty_cluster_reseeded(self, caplog):
        """Test that an empty cluster takes the farthest point."""
        points = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [5.0, 5.0]])

        with caplog.at_level(logging.WARNING):
            result = KMeans(init=[[0.0, 0.0], [100.0, 100.0]]).run(points)

        assert result.n_reseeded == 1
        assert result.labels.tolist() == [0, 0, 0, 1]
        np.testing.assert_allclose(result.centroids, [[1 / 3, 1 / 3], [5.0, 5.0]])
        assert result.total_within_ss == pytest.approx(4 / 3)
        assert any('became empty' in record.getMessage() for record in caplog.records)

    def test_reseed_leaves_centroids_untouched(self):
        """Test that reseeding returns new centroids instead of editing the input."""
        points = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [5.0, 5.0]])
        centroids = np.array([[0.0, 0.0], [100.0, 100.0]])
        squared = np.sum((points[:, None, :] - centroids[None, :, :]) ** 2, axis=2)
        labels = np.zeros(4, dtype=np.int64)

        reseeded, count = KMeans._reseed_empty(points, squared, labels, centroids)

        assert count == 1
        assert labels.tolist() == [0, 0, 0, 1]
        np.testing.assert_array_equal(reseeded, [[0.0, 0.0], [5.0, 5.0]])
        np.testing.assert_array_equal(centroids, [[0.0, 0.0], [100.0, 100.0]])

    def test_did_not_converge(self, caplog):
        """Test that hitting max_iter returns the best partition with a status."""
        with caplog.at_level(logging.WARNING):
            result = KMeans(init=[[0.0, 0.0], [1.0, 1.0]], max_iter=1).run(self.data)

        assert result.status is ConvergenceStatus.DID_NOT_CONVERGE
        assert not result.converged
        assert result.n_iter == 1
        assert result.partition.n_samples == 60
        assert result.partition.n_clusters == 2
        assert any('did not converge' in record.getMessage() for record in caplog.records)

    def test_large_tol_stops_early(self):
        """Test that tol ends the run once WSS gains become small."""
        result = KMeans(n_clusters=3, tol=1e12, random_state=3).run(self.data)

        assert result.converged
        assert result.n_iter <= 2

    def test_invalid_cluster_counts(self):
        """Test that k outside [1, n] is rejected."""
        for k in (0, 61, -2):
            with pytest.raises(InvalidInput):
                KMeans(n_clusters=k).run(self.data)

        with pytest.raises(InvalidInput):
            KMeans().run(self.data)

    def test_too_few_distinct_rows(self):
        """Test that random init needs k distinct rows."""
        points = [[0.0, 0.0], [0.0, 0.0], [1.0, 1.0]]

        with pytest.raises(InvalidInput, match='distinct'):
            KMeans(n_clusters=3).run(points)

        # Two distinct rows are enough for k = 2
        result = KMeans(n_clusters=2).run(points)
        assert result.labels.tolist() in ([0, 0, 1], [1, 1, 0])

    def test_invalid_explicit_init(self):
        """Test that malformed starting centroids are rejected."""
        with pytest.raises(InvalidInput):
            KMeans(init=[[0.0, 0.0, 0.0]]).run(self.data)

        with pytest.raises(InvalidInput):
            KMeans(init=[[0.0, np.nan]]).run(self.data)

        with pytest.raises(InvalidInput):
            KMeans(n_clusters=2, init=self.near_centers).run(self.data)

    def test_invalid_settings(self):
        """Test that bad iteration settings are rejected."""
        with pytest.raises(InvalidInput):
            KMeans(n_clusters=2, max_iter=0).run(self.data)

        with pytest.raises(InvalidInput):
            KMeans(n_clusters=2, tol=-1.0).run(self.data)

        with pytest.raises(InvalidInput):
            KMeans(n_clusters=2, init='k-means++').run(self.data)

    def test_get_params(self):
        """Test parameter reporting."""
        params = KMeans(n_clusters=3, random_state=5).get_params()

        assert params['n_clusters'] == 3
        assert params['init'] == 'random'
        assert params['random_state'] == 5
        assert KMeans(init=self.near_centers).get_params()['init'] == 'explicit'


if __name__ == '__main__':
    pytest.main([__file__])
