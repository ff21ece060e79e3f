"""Partition quality measures."""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union

import numpy as np
from sklearn.metrics import calinski_harabasz_score, davies_bouldin_score

from ..core.distance import DistanceMatrix
from ..core.features import as_feature_matrix
from ..core.partition import Partition
from ..utils.validation import validate_same_size


@dataclass(frozen=True)
class SilhouetteRecord:
    """Silhouette width of one point."""
    point: int
    cluster_id: int
    neighbor_cluster_id: Optional[int]
    width: float


class Silhouette:
    """
    Per-point silhouette widths of a partition.

    For point i in cluster C, a(i) is its mean distance to the other members
    of C and b(i) the smallest mean distance to any other cluster; the width
    is (b - a) / max(a, b). Points in singleton clusters get width 0, as do
    points where a and b are both 0. With a single cluster every width is 0
    and no neighbor exists.
    """

    def __init__(self, records: List[SilhouetteRecord], partition: Partition):
        self._records = tuple(records)
        self.partition = partition

    @classmethod
    def compute(cls, partition: Partition, distance_matrix: DistanceMatrix) -> 'Silhouette':
        """
        Compute silhouette widths for every point.

        Args:
            partition: Cluster assignment of the points
            distance_matrix: Pairwise dissimilarities of the same points

        Returns:
            Silhouette with one record per point, in point order

        Raises:
            InvalidInput: If partition and matrix sizes differ
        """
        validate_same_size(partition.n_samples, distance_matrix.n_samples,
                           "Partition and distance matrix differ")

        labels = partition.labels
        k = partition.n_clusters
        n = partition.n_samples

        if k == 1:
            records = [SilhouetteRecord(i, 0, None, 0.0) for i in range(n)]
            return cls(records, partition)

        square = distance_matrix.to_square()
        indicator = np.zeros((n, k))
        indicator[np.arange(n), labels] = 1.0

        sums = square @ indicator
        sizes = partition.sizes().astype(np.float64)
        own_size = sizes[labels]

        own_sum = sums[np.arange(n), labels]
        a = np.divide(own_sum, own_size - 1, out=np.zeros(n), where=own_size > 1)

        mean_to = sums / sizes
        mean_to[np.arange(n), labels] = np.inf
        neighbors = np.argmin(mean_to, axis=1)
        b = mean_to[np.arange(n), neighbors]

        denominator = np.maximum(a, b)
        widths = np.divide(b - a, denominator, out=np.zeros(n), where=denominator > 0)
        widths[own_size == 1] = 0.0
        widths = np.clip(widths, -1.0, 1.0)

        records = [
            SilhouetteRecord(
                point=i,
                cluster_id=int(labels[i]),
                neighbor_cluster_id=int(neighbors[i]),
                width=float(widths[i])
            )
            for i in range(n)
        ]
        return cls(records, partition)

    def widths(self) -> np.ndarray:
        return np.array([record.width for record in self._records])

    def average_width(self) -> float:
        """Mean width over all points."""
        return float(np.mean(self.widths()))

    def average_width_per_cluster(self) -> Dict[int, float]:
        """Mean width of each cluster, keyed by cluster id."""
        widths = self.widths()
        labels = self.partition.labels
        return {
            cluster_id: float(np.mean(widths[labels == cluster_id]))
            for cluster_id in range(self.partition.n_clusters)
        }

    def __getitem__(self, index: int) -> SilhouetteRecord:
        return self._records[index]

    def __iter__(self) -> Iterator[SilhouetteRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


def cluster_means(values: np.ndarray, partition: Partition) -> np.ndarray:
    """Arithmetic mean of each cluster, indexed by cluster id."""
    sums = np.zeros((partition.n_clusters, values.shape[1]))
    np.add.at(sums, partition.labels, values)
    return sums / partition.sizes()[:, None]


def within_cluster_ss(matrix: Any, partition: Partition) -> float:
    """
    Within-cluster sum of squared Euclidean distances to cluster means.

    Args:
        matrix: FeatureMatrix or 2D array-like
        partition: Cluster assignment of the rows

    Returns:
        Total WSS
    """
    values = as_feature_matrix(matrix).values
    validate_same_size(partition.n_samples, len(values), "Partition and feature matrix differ")
    means = cluster_means(values, partition)
    return float(np.sum((values - means[partition.labels]) ** 2))


def evaluate_partition(
    matrix: Any,
    partition: Partition,
    distance_matrix: Optional[DistanceMatrix] = None
) -> Dict[str, Union[int, float]]:
    """
    Evaluate partition quality using multiple metrics.

    Args:
        matrix: Feature matrix
        partition: Cluster assignment
        distance_matrix: Precomputed distances (Euclidean built if omitted)

    Returns:
        Dictionary of metric scores
    """
    features = as_feature_matrix(matrix)
    metrics = {
        'n_clusters': partition.n_clusters,
        'wss': within_cluster_ss(features, partition)
    }

    # Only calculate separation metrics if clusters are neither one nor all points
    if 1 < partition.n_clusters < partition.n_samples:
        if distance_matrix is None:
            distance_matrix = DistanceMatrix.build(features)

        # Silhouette (higher is better, -1 to 1)
        metrics['silhouette'] = Silhouette.compute(partition, distance_matrix).average_width()

        # Calinski-Harabasz score (higher is better)
        metrics['calinski_harabasz'] = float(
            calinski_harabasz_score(features.values, partition.labels)
        )

        # Davies-Bouldin score (lower is better)
        metrics['davies_bouldin'] = float(
            davies_bouldin_score(features.values, partition.labels)
        )

    return metrics
