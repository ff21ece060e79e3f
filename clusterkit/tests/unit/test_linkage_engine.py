"""Unit tests for agglomerative clustering."""

import pytest
import numpy as np
from scipy.cluster.hierarchy import linkage as scipy_linkage
from scipy.spatial.distance import pdist

from clusterkit.clustering.linkage import Linkage, LinkageEngine, _WorkingSet
from clusterkit.core.dendrogram import MergeStep
from clusterkit.core.distance import DistanceMatrix
from clusterkit.exceptions import InvalidInput


class TestLinkageEngine:
    """Test cases for LinkageEngine."""

    def setup_method(self):
        """Set up test fixtures."""
        np.random.seed(42)

        # Three well-separated blobs
        cluster1 = np.random.randn(10, 2) * 0.5 + np.array([0, 0])
        cluster2 = np.random.randn(10, 2) * 0.5 + np.array([8, 8])
        cluster3 = np.random.randn(10, 2) * 0.5 + np.array([-8, 8])

        self.data = np.vstack([cluster1, cluster2, cluster3])
        self.distances = DistanceMatrix.build(self.data)

        # Three tight pairs far apart from each other
        self.six_points = np.array([
            [0.0, 0.0], [0.0, 0.1],
            [10.0, 0.0], [10.0, 0.2],
            [0.0, 10.0], [0.3, 10.0]
        ])

    @pytest.mark.parametrize('linkage', ['single', 'complete', 'average'])
    def test_monotonic_heights(self, linkage):
        """Test that single, complete and average linkage never invert."""
        dendrogram = LinkageEngine(linkage).run(self.distances)

        assert len(dendrogram) == 29
        assert dendrogram.is_monotonic()
        assert dendrogram.inversions() == []

    @pytest.mark.parametrize('linkage', ['single', 'complete', 'average', 'centroid'])
    def test_heights_match_scipy(self, linkage):
        """Test merge heights against scipy's implementation."""
        dendrogram = LinkageEngine(linkage).run(self.distances)

        if linkage == 'centroid':
            reference = scipy_linkage(self.data, method='centroid')
        else:
            reference = scipy_linkage(pdist(self.data), method=linkage)

        np.testing.assert_allclose(
            np.sort(dendrogram.heights()),
            np.sort(reference[:, 2]),
            rtol=1e-9
        )

    @pytest.mark.parametrize('linkage', list(Linkage))
    def test_cached_row_minima(self, linkage):
        """Test that cached row minima track the table through every merge."""
        # Integer grid points give many tied distances
        grid = DistanceMatrix.build([[x, y] for x in range(5) for y in range(3)])
        working = _WorkingSet(grid, squared=linkage is Linkage.CENTROID)

        for t in range(14):
            a, b, best = working.closest_pair()
            assert best == working.table.min()
            working.merge(min(a, b), max(a, b), 15 + t, linkage)
            np.testing.assert_array_equal(working.row_min, working.table.min(axis=1))

    def test_six_point_complete_linkage(self):
        """Test the exact merge order on three tight pairs."""
        distances = DistanceMatrix.build(self.six_points)
        dendrogram = LinkageEngine('complete').run(distances)

        ids = [(s.left_id, s.right_id, s.new_id, s.size) for s in dendrogram]
        assert ids == [
            (0, 1, 6, 2),
            (2, 3, 7, 2),
            (4, 5, 8, 2),
            (6, 7, 9, 4),
            (8, 9, 10, 6)
        ]

        heights = dendrogram.heights()
        assert heights[0] == pytest.approx(0.1)
        assert heights[1] == pytest.approx(0.2)
        assert heights[2] == pytest.approx(0.3)
        assert heights[3] == pytest.approx(np.sqrt(100.04))
        assert heights[4] == pytest.approx(np.sqrt(200.0))

        partition = dendrogram.cut_by_count(3)
        assert partition.labels.tolist() == [0, 0, 1, 1, 2, 2]

    def test_ties_go_to_lowest_ids(self):
        """Test deterministic tie-breaking on equally spaced points."""
        distances = DistanceMatrix.build([[0.0], [1.0], [2.0], [3.0]])
        dendrogram = LinkageEngine('single').run(distances)

        assert list(dendrogram) == [
            MergeStep(0, 1, 1.0, 4, 2),
            MergeStep(2, 3, 1.0, 5, 2),
            MergeStep(4, 5, 1.0, 6, 4)
        ]

    def test_centroid_inversion_tolerated(self):
        """Test that centroid linkage may merge below an earlier height."""
        points = [[0.0, 0.0], [2.0, 0.0], [1.0, 1.7]]
        dendrogram = LinkageEngine(Linkage.CENTROID).run(DistanceMatrix.build(points))

        first, second = dendrogram.steps
        assert (first.left_id, first.right_id) == (0, 2)
        assert first.height == pytest.approx(np.sqrt(3.89))
        assert (second.left_id, second.right_id) == (1, 3)
        assert second.height == pytest.approx(np.sqrt(2.9725))

        assert not dendrogram.is_monotonic()
        assert dendrogram.inversions() == [1]

    def test_average_linkage_small(self):
        """Test average linkage arithmetic by hand."""
        # d(0,1)=1, d(0,2)=4, d(1,2)=6
        distances = DistanceMatrix.from_condensed([1.0, 4.0, 6.0])
        dendrogram = LinkageEngine('average').run(distances)

        assert dendrogram.steps[0] == MergeStep(0, 1, 1.0, 3, 2)
        assert dendrogram.steps[1] == MergeStep(2, 3, 5.0, 4, 3)

    def test_two_points(self):
        """Test the smallest valid input."""
        dendrogram = LinkageEngine('complete').run(DistanceMatrix.from_condensed([2.5]))

        assert list(dendrogram) == [MergeStep(0, 1, 2.5, 2, 2)]

    def test_size_mismatch(self):
        """Test that a wrong n_samples is rejected."""
        with pytest.raises(InvalidInput):
            LinkageEngine('single').run(self.distances, n_samples=12)

    def test_requires_distance_matrix(self):
        """Test that raw arrays are not accepted."""
        with pytest.raises(InvalidInput):
            LinkageEngine('single').run(self.data)

    def test_unknown_linkage(self):
        """Test that unsupported linkage names are rejected."""
        with pytest.raises(InvalidInput):
            LinkageEngine('ward')

    def test_recovers_blobs(self):
        """Test that cutting at 3 recovers the three blobs."""
        truth = np.repeat([0, 1, 2], 10)

        for linkage in ('single', 'complete', 'average', 'centroid'):
            partition = LinkageEngine(linkage).run(self.distances).cut_by_count(3)
            assert partition.labels.tolist() == truth.tolist()

    def test_get_params(self):
        """Test parameter reporting."""
        assert LinkageEngine('centroid').get_params() == {'linkage': 'centroid'}


if __name__ == '__main__':
    pytest.main([__file__])
