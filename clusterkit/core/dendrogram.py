"""Merge trees produced by hierarchical clustering."""

from dataclasses import dataclass
from typing import Iterator, List, Sequence

import numpy as np

from ..exceptions import InvalidInput
from ..utils.validation import validate_cluster_count
from .partition import Partition


@dataclass(frozen=True)
class MergeStep:
    """Two existing clusters uniting at a given height into a new cluster."""
    left_id: int
    right_id: int
    height: float
    new_id: int
    size: int


class Dendrogram:
    """
    Sequence of n - 1 merge steps over n leaves.

    Leaves are ids 0..n-1; the cluster created by step t has id n + t.
    Frozen after construction.
    """

    def __init__(self, steps: Sequence[MergeStep], n_leaves: int, method: str = 'unknown'):
        """
        Validate and freeze merge steps.

        Args:
            steps: Merge steps in merge order
            n_leaves: Number of original points
            method: Name of the engine or linkage that built the tree

        Raises:
            InvalidInput: If the steps do not form a complete binary merge tree
        """
        if n_leaves < 2:
            raise InvalidInput(f"A dendrogram needs at least 2 leaves, got {n_leaves}")
        if len(steps) != n_leaves - 1:
            raise InvalidInput(
                f"Expected {n_leaves - 1} merge steps for {n_leaves} leaves, got {len(steps)}"
            )

        n_nodes = 2 * n_leaves - 1
        sizes = np.zeros(n_nodes, dtype=np.int64)
        sizes[:n_leaves] = 1
        consumed = np.zeros(n_nodes, dtype=bool)

        for t, step in enumerate(steps):
            new_id = n_leaves + t
            if step.new_id != new_id:
                raise InvalidInput(f"Step {t} allocates id {step.new_id}; expected {new_id}")
            if not 0 <= step.left_id < step.right_id < new_id:
                raise InvalidInput(
                    f"Step {t} merges invalid ids ({step.left_id}, {step.right_id})"
                )
            if consumed[step.left_id] or consumed[step.right_id]:
                raise InvalidInput(f"Step {t} reuses an already merged cluster")
            if not np.isfinite(step.height):
                raise InvalidInput(f"Step {t} has non-finite height {step.height}")

            sizes[new_id] = sizes[step.left_id] + sizes[step.right_id]
            if step.size != sizes[new_id]:
                raise InvalidInput(
                    f"Step {t} reports size {step.size}; children sum to {sizes[new_id]}"
                )
            consumed[step.left_id] = consumed[step.right_id] = True

        self._steps = tuple(steps)
        self._n_leaves = n_leaves
        self.method = method

    @property
    def steps(self) -> tuple:
        return self._steps

    @property
    def n_leaves(self) -> int:
        return self._n_leaves

    def heights(self) -> np.ndarray:
        """Merge heights in merge order."""
        return np.array([step.height for step in self._steps], dtype=np.float64)

    def is_monotonic(self) -> bool:
        """True when heights never decrease along the merge sequence."""
        return bool(np.all(np.diff(self.heights()) >= 0))

    def inversions(self) -> List[int]:
        """
        Merge steps lower than one of the merges they absorb.

        Centroid linkage can produce these; the other linkage rules cannot.

        Returns:
            Indices of merge steps whose height is below a child's height
        """
        n = self._n_leaves
        found = []
        for t, step in enumerate(self._steps):
            for child in (step.left_id, step.right_id):
                if child >= n and self._steps[child - n].height > step.height:
                    found.append(t)
                    break
        return found

    def cut_by_count(self, k: int) -> Partition:
        """
        Undo merges from the last one back until exactly k clusters remain.

        Args:
            k: Number of clusters (1 <= k <= n)

        Returns:
            Partition with exactly k clusters

        Raises:
            InvalidInput: If k is out of range
        """
        n = self._n_leaves
        k = validate_cluster_count(k, n)

        applied = np.zeros(n - 1, dtype=bool)
        applied[:n - k] = True
        return self._partition_from(applied)

    def cut_by_height(self, h: float) -> Partition:
        """
        Keep only merges at or below a height.

        A merge is kept when its height and the heights of every merge beneath
        it are <= h, so inversions never produce overlapping clusters.

        Args:
            h: Cut height

        Returns:
            Partition
        """
        if not np.isfinite(h):
            raise InvalidInput(f"Cut height must be finite, got {h}")

        n = self._n_leaves
        subtree_max = np.full(2 * n - 1, -np.inf)
        for t, step in enumerate(self._steps):
            subtree_max[n + t] = max(
                step.height,
                subtree_max[step.left_id],
                subtree_max[step.right_id]
            )

        applied = subtree_max[n:] <= h
        return self._partition_from(applied)

    def members(self, cluster_id: int) -> List[int]:
        """Leaf indices under any node of the tree."""
        n = self._n_leaves
        if not 0 <= cluster_id < 2 * n - 1:
            raise InvalidInput(f"Unknown cluster id {cluster_id}")

        leaves = []
        stack = [cluster_id]
        while stack:
            node = stack.pop()
            if node < n:
                leaves.append(node)
            else:
                step = self._steps[node - n]
                stack.extend((step.left_id, step.right_id))
        return sorted(leaves)

    def to_linkage_matrix(self) -> np.ndarray:
        """
        Export as a scipy-style linkage matrix.

        Returns:
            (n - 1, 4) array of [left_id, right_id, height, size] rows, usable by
            scipy.cluster.hierarchy.dendrogram for rendering
        """
        return np.array(
            [[s.left_id, s.right_id, s.height, s.size] for s in self._steps],
            dtype=np.float64
        )

    def _partition_from(self, applied: np.ndarray) -> Partition:
        # `applied` must be closed downward: a kept merge keeps its children.
        n = self._n_leaves
        top = np.full(2 * n - 1, -1, dtype=np.int64)

        for t in range(n - 2, -1, -1):
            if not applied[t]:
                continue
            node = n + t
            if top[node] < 0:
                top[node] = node
            step = self._steps[t]
            top[step.left_id] = top[node]
            top[step.right_id] = top[node]

        labels = top[:n]
        singletons = labels < 0
        labels[singletons] = np.flatnonzero(singletons)
        return Partition.from_labels(labels)

    def __iter__(self) -> Iterator[MergeStep]:
        return iter(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __repr__(self) -> str:
        return f"Dendrogram(n_leaves={self._n_leaves}, method={self.method!r})"
