"""Cluster assignments for a set of points."""

from typing import Dict, List, Sequence

import numpy as np

from ..exceptions import InvalidInput


class Partition:
    """
    Mapping from point index to cluster id.

    Every point carries exactly one id in [0, n_clusters) and every id is used
    by at least one point.
    """

    def __init__(self, labels: np.ndarray, n_clusters: int):
        # Use from_labels(); it validates and canonicalises the ids.
        labels.setflags(write=False)
        self._labels = labels
        self._n_clusters = n_clusters

    @classmethod
    def from_labels(cls, labels: Sequence[int], relabel: bool = True) -> 'Partition':
        """
        Build a partition from per-point labels.

        Args:
            labels: Cluster label for each point
            relabel: Renumber ids by order of first appearance, so point 0 is
                always in cluster 0. When False, ids must already be
                contiguous from 0.

        Returns:
            Partition

        Raises:
            InvalidInput: If labels are empty, non-integer, or not contiguous
                when relabel is False
        """
        raw = np.asarray(labels)
        if raw.ndim != 1 or raw.size == 0:
            raise InvalidInput(f"Expected a non-empty 1D label vector, got shape {raw.shape}")
        if not np.issubdtype(raw.dtype, np.integer):
            if not np.all(np.mod(raw, 1) == 0):
                raise InvalidInput("Cluster labels must be integers")
        raw = raw.astype(np.int64)

        if relabel:
            _, first_seen, inverse = np.unique(raw, return_index=True, return_inverse=True)
            order = np.argsort(first_seen)
            rank = np.empty_like(order)
            rank[order] = np.arange(len(order))
            canonical = rank[inverse.reshape(-1)].astype(np.int64)
            return cls(canonical, len(order))

        present = np.unique(raw)
        n_clusters = int(present.max()) + 1
        if present.min() < 0 or len(present) != n_clusters:
            raise InvalidInput(
                f"Cluster ids must cover 0..{n_clusters - 1} without gaps, got {present.tolist()}"
            )
        return cls(raw.copy(), n_clusters)

    @property
    def labels(self) -> np.ndarray:
        """Read-only label vector."""
        return self._labels

    @property
    def n_samples(self) -> int:
        return len(self._labels)

    @property
    def n_clusters(self) -> int:
        return self._n_clusters

    def clusters(self) -> Dict[int, List[int]]:
        """
        Convert labels to dictionary format.

        Returns:
            Dict mapping cluster IDs to sorted lists of point indices
        """
        clusters = {cluster_id: [] for cluster_id in range(self._n_clusters)}
        for index, label in enumerate(self._labels):
            clusters[int(label)].append(index)
        return clusters

    def members(self, cluster_id: int) -> np.ndarray:
        """Point indices assigned to a cluster."""
        if not 0 <= cluster_id < self._n_clusters:
            raise InvalidInput(f"Unknown cluster id {cluster_id}")
        return np.flatnonzero(self._labels == cluster_id)

    def sizes(self) -> np.ndarray:
        """Number of points in each cluster, indexed by cluster id."""
        return np.bincount(self._labels, minlength=self._n_clusters)

    def same_grouping(self, other: 'Partition') -> bool:
        """True when both partitions group the points identically, whatever the ids."""
        if self.n_samples != other.n_samples or self.n_clusters != other.n_clusters:
            return False
        mine = Partition.from_labels(self._labels)
        theirs = Partition.from_labels(other.labels)
        return bool(np.array_equal(mine.labels, theirs.labels))

    def __len__(self) -> int:
        return self.n_samples

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Partition):
            return NotImplemented
        return self._n_clusters == other._n_clusters and np.array_equal(self._labels, other._labels)

    def __hash__(self) -> int:
        return hash((self._n_clusters, self._labels.tobytes()))

    def __repr__(self) -> str:
        return f"Partition(n_samples={self.n_samples}, n_clusters={self._n_clusters})"
