"""Agglomerative hierarchical clustering over a distance matrix."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from ..config.constants import MONOTONIC_LINKAGES
from ..core.dendrogram import Dendrogram, MergeStep
from ..core.distance import DistanceMatrix
from ..exceptions import InvalidInput
from ..utils.logging import get_logger
from ..utils.validation import validate_same_size

logger = get_logger(__name__)


class Linkage(Enum):
    """Rules for the dissimilarity between two clusters."""
    SINGLE = "single"
    COMPLETE = "complete"
    AVERAGE = "average"
    CENTROID = "centroid"

    @property
    def is_monotonic(self) -> bool:
        return self.value in MONOTONIC_LINKAGES


def resolve_linkage(linkage: Union[Linkage, str]) -> Linkage:
    """Normalise a linkage argument to a Linkage member."""
    if isinstance(linkage, Linkage):
        return linkage
    try:
        return Linkage(str(linkage).lower())
    except ValueError:
        raise InvalidInput(
            f"Unknown linkage: {linkage}. Available: {[l.value for l in Linkage]}"
        ) from None


@dataclass
class ClusterRecord:
    """Working state of one active cluster during agglomeration."""
    cluster_id: int
    size: int


class _WorkingSet:
    """
    Active clusters and their live dissimilarities.

    Slot i of the table holds the cluster in records[i]; a merged cluster
    takes over the lower of its children's slots and the other slot is
    retired. For centroid linkage the table holds squared distances.
    row_min caches each slot's smallest entry and is refreshed only for rows
    a merge can change.
    """

    def __init__(self, distances: DistanceMatrix, squared: bool):
        table = distances.to_square()
        if squared:
            table = table ** 2
        np.fill_diagonal(table, np.inf)

        n = distances.n_samples
        self.table = table
        self.records: Dict[int, ClusterRecord] = {
            slot: ClusterRecord(cluster_id=slot, size=1) for slot in range(n)
        }
        self.active = np.ones(n, dtype=bool)
        self.row_min = table.min(axis=1)

    def closest_pair(self) -> Tuple[int, int, float]:
        """
        Active slots with minimum dissimilarity.

        Exact ties go to the lexicographically lowest (left_id, right_id).
        """
        best = self.row_min.min()

        candidates = []
        for a in np.flatnonzero(self.row_min == best).tolist():
            for b in np.flatnonzero(self.table[a] == best).tolist():
                left, right = sorted((self.records[a].cluster_id, self.records[b].cluster_id))
                candidates.append((left, right, a, b))
        left, right, a, b = min(candidates)
        return a, b, float(best)

    def merge(self, a: int, b: int, new_id: int, linkage: Linkage) -> ClusterRecord:
        """Merge slot b into slot a and refresh a's row with the linkage rule."""
        size_a = self.records[a].size
        size_b = self.records[b].size

        others = self.active.copy()
        others[[a, b]] = False

        d_a = self.table[a, others]
        d_b = self.table[b, others]

        if linkage is Linkage.SINGLE:
            updated = np.minimum(d_a, d_b)
        elif linkage is Linkage.COMPLETE:
            updated = np.maximum(d_a, d_b)
        elif linkage is Linkage.AVERAGE:
            updated = (size_a * d_a + size_b * d_b) / (size_a + size_b)
        else:
            # Squared distance from the size-weighted centroid of a and b to
            # each other cluster's centroid (Lance-Williams centroid form).
            total = size_a + size_b
            d_ab = self.table[a, b]
            updated = (size_a * d_a + size_b * d_b) / total - size_a * size_b * d_ab / total ** 2
            updated = np.maximum(updated, 0.0)

        rows = np.flatnonzero(others)
        previous = self.row_min[rows]
        # Rows whose minimum sat in column a or b must be rescanned
        stale = (d_a == previous) | (d_b == previous)

        self.table[a, others] = updated
        self.table[others, a] = updated
        self.table[b, :] = np.inf
        self.table[:, b] = np.inf
        self.active[b] = False

        self.row_min[rows] = np.minimum(previous, updated)
        if stale.any():
            self.row_min[rows[stale]] = self.table[rows[stale]].min(axis=1)
        self.row_min[a] = self.table[a].min()
        self.row_min[b] = np.inf

        record = ClusterRecord(cluster_id=new_id, size=size_a + size_b)
        self.records[a] = record
        del self.records[b]
        return record


class LinkageEngine:
    """
    Agglomerative clustering with a selectable linkage rule.

    Starts from singletons and repeatedly merges the closest pair of active
    clusters until a single cluster remains.
    """

    def __init__(self, linkage: Union[Linkage, str] = Linkage.AVERAGE):
        """
        Initialize linkage engine.

        Args:
            linkage: single, complete, average or centroid
        """
        self.linkage = resolve_linkage(linkage)

    def run(self,
            distance_matrix: DistanceMatrix,
            n_samples: Optional[int] = None) -> Dendrogram:
        """
        Build the full merge tree.

        Args:
            distance_matrix: Pairwise dissimilarities between the points
            n_samples: Expected number of points, checked against the matrix

        Returns:
            Dendrogram with n - 1 merge steps

        Raises:
            InvalidInput: If the matrix size does not match n_samples
        """
        if not isinstance(distance_matrix, DistanceMatrix):
            raise InvalidInput(
                f"Expected a DistanceMatrix, got {type(distance_matrix).__name__}"
            )

        n = distance_matrix.n_samples
        if n_samples is not None:
            validate_same_size(n, n_samples, "Distance matrix size does not match n_samples")

        squared = self.linkage is Linkage.CENTROID
        working = _WorkingSet(distance_matrix, squared=squared)
        steps: List[MergeStep] = []

        logger.info(f"Running {self.linkage.value} linkage on {n} points")

        for t in range(n - 1):
            a, b, dissimilarity = working.closest_pair()
            left_id, right_id = sorted((working.records[a].cluster_id,
                                        working.records[b].cluster_id))
            height = float(np.sqrt(dissimilarity)) if squared else dissimilarity

            keep, retire = min(a, b), max(a, b)
            record = working.merge(keep, retire, n + t, self.linkage)

            steps.append(MergeStep(
                left_id=left_id,
                right_id=right_id,
                height=height,
                new_id=record.cluster_id,
                size=record.size
            ))
            logger.debug(f"Merge {t}: {left_id} + {right_id} -> {record.cluster_id} at {height:.6g}")

        dendrogram = Dendrogram(steps, n, method=self.linkage.value)
        if not self.linkage.is_monotonic:
            inversions = dendrogram.inversions()
            if inversions:
                logger.info(f"Centroid linkage produced {len(inversions)} height inversions")
        return dendrogram

    def get_params(self) -> dict:
        return {'linkage': self.linkage.value}
