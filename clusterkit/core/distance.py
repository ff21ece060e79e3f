"""Pairwise dissimilarities stored as a condensed upper triangle."""

from enum import Enum
from typing import Any, Callable, Iterator, Sequence, Tuple, Union

import numpy as np
from scipy.spatial.distance import is_valid_dm, pdist, squareform
from sklearn.metrics import pairwise_distances

from ..exceptions import InvalidInput
from ..utils.logging import get_logger
from .features import as_feature_matrix

logger = get_logger(__name__)


class Metric(Enum):
    """Supported point-to-point distance functions."""
    EUCLIDEAN = "euclidean"
    MANHATTAN = "manhattan"
    CUSTOM = "custom"


# Metric names as understood by scipy and scikit-learn respectively
_SCIPY_METRICS = {
    Metric.EUCLIDEAN: 'euclidean',
    Metric.MANHATTAN: 'cityblock',
}

_SKLEARN_METRICS = {
    Metric.EUCLIDEAN: 'euclidean',
    Metric.MANHATTAN: 'manhattan',
}

MetricSpec = Union[Metric, str, Callable[[np.ndarray, np.ndarray], float]]


def resolve_metric(metric: MetricSpec) -> Tuple[Metric, Any]:
    """
    Normalise a metric argument.

    Args:
        metric: Metric member, its name, or a callable f(u, v) -> float

    Returns:
        Tuple of (Metric member, callable or None)
    """
    if isinstance(metric, Metric):
        if metric is Metric.CUSTOM:
            raise InvalidInput("Metric.CUSTOM requires a callable distance function")
        return metric, None

    if callable(metric):
        return Metric.CUSTOM, metric

    try:
        resolved = Metric(str(metric).lower())
    except ValueError:
        raise InvalidInput(
            f"Unknown metric: {metric}. Available: "
            f"{[m.value for m in Metric if m is not Metric.CUSTOM]} or a callable"
        ) from None

    if resolved is Metric.CUSTOM:
        raise InvalidInput("The 'custom' metric requires a callable distance function")
    return resolved, None


class PairSequence:
    """Lazy, restartable sequence of (i, j, distance) with i < j."""

    def __init__(self, distances: 'DistanceMatrix'):
        self._distances = distances

    def __iter__(self) -> Iterator[Tuple[int, int, float]]:
        condensed = self._distances.condensed
        n = self._distances.n_samples
        position = 0
        for i in range(n - 1):
            for j in range(i + 1, n):
                yield i, j, float(condensed[position])
                position += 1

    def __len__(self) -> int:
        return len(self._distances.condensed)


class DistanceMatrix:
    """
    Symmetric n x n dissimilarities with zero diagonal.

    Only the i < j entries are held, in the row-major condensed layout used by
    scipy.spatial.distance. The mirror and the diagonal are derived on access.
    """

    def __init__(self, condensed: np.ndarray, n_samples: int,
                 metric: Metric = Metric.EUCLIDEAN):
        # Use build(), from_condensed() or from_square(); they validate input
        # and hand over a freshly allocated array.
        condensed = np.asarray(condensed, dtype=np.float64)
        condensed.setflags(write=False)

        self._condensed = condensed
        self._n_samples = n_samples
        self.metric = metric

    @classmethod
    def build(cls,
              matrix: Any,
              metric: MetricSpec = Metric.EUCLIDEAN,
              n_jobs: int = 1) -> 'DistanceMatrix':
        """
        Compute all pairwise distances of a feature matrix.

        Args:
            matrix: FeatureMatrix or 2D array-like (n_samples, n_features)
            metric: Metric member, 'euclidean', 'manhattan', or a callable
            n_jobs: Parallel workers for named metrics (-1 for all cores)

        Returns:
            Immutable distance matrix

        Raises:
            InvalidInput: If the matrix is malformed or any distance is
                NaN, infinite or negative
        """
        features = as_feature_matrix(matrix)
        resolved, function = resolve_metric(metric)
        values = features.values

        if function is not None:
            condensed = pdist(values, function)
        elif n_jobs != 1:
            square = pairwise_distances(
                values,
                metric=_SKLEARN_METRICS[resolved],
                n_jobs=n_jobs
            )
            condensed = squareform(square, force='tovector', checks=False)
        else:
            condensed = pdist(values, metric=_SCIPY_METRICS[resolved])

        _check_condensed(condensed)

        logger.debug(
            f"Built {resolved.value} distance matrix for {features.n_samples} points "
            f"({len(condensed)} pairs)"
        )
        return cls(condensed, features.n_samples, resolved)

    @classmethod
    def from_condensed(cls, values: Sequence[float]) -> 'DistanceMatrix':
        """
        Wrap precomputed condensed dissimilarities.

        Args:
            values: 1D array of n(n-1)/2 entries in row-major i < j order

        Returns:
            Immutable distance matrix
        """
        condensed = np.array(values, dtype=np.float64)
        if condensed.ndim != 1:
            raise InvalidInput(f"Expected 1D condensed distances, got shape {condensed.shape}")

        n_samples = _samples_for_length(len(condensed))
        _check_condensed(condensed)
        return cls(condensed, n_samples, Metric.CUSTOM)

    @classmethod
    def from_square(cls, values: Any, tol: float = 1e-10) -> 'DistanceMatrix':
        """
        Wrap a precomputed square dissimilarity matrix.

        Args:
            values: (n, n) symmetric array with zero diagonal
            tol: Tolerance for the symmetry and diagonal checks

        Returns:
            Immutable distance matrix
        """
        square = np.array(values, dtype=np.float64)
        if square.ndim != 2 or square.shape[0] != square.shape[1]:
            raise InvalidInput(f"Expected a square matrix, got shape {square.shape}")
        if square.shape[0] < 2:
            raise InvalidInput(f"Need at least 2 points, got {square.shape[0]}")
        if not np.all(np.isfinite(square)):
            raise InvalidInput("Distance matrix contains NaN or infinite values")

        try:
            is_valid_dm(square, tol=tol, throw=True)
        except ValueError as e:
            raise InvalidInput(f"Invalid distance matrix: {e}") from e

        condensed = squareform(square, force='tovector', checks=False)
        return cls(condensed, square.shape[0], Metric.CUSTOM)

    @property
    def n_samples(self) -> int:
        return self._n_samples

    @property
    def condensed(self) -> np.ndarray:
        """Read-only condensed distances."""
        return self._condensed

    def distance(self, i: int, j: int) -> float:
        """
        Dissimilarity between points i and j.

        Args:
            i: First point index
            j: Second point index

        Returns:
            Distance (0.0 when i == j)
        """
        n = self._n_samples
        if not (0 <= i < n and 0 <= j < n):
            raise InvalidInput(f"Point index out of range for {n} points: ({i}, {j})")
        if i == j:
            return 0.0
        if i > j:
            i, j = j, i
        return float(self._condensed[n * i - i * (i + 1) // 2 + (j - i - 1)])

    def all_pairs(self) -> PairSequence:
        """Lazy sequence of (i, j, d) for every i < j; iterating restarts it."""
        return PairSequence(self)

    def to_square(self) -> np.ndarray:
        """Expand into a full (n, n) array."""
        return squareform(self._condensed, force='tomatrix', checks=False)

    def submatrix(self, indices: Sequence[int]) -> np.ndarray:
        """Square block of distances between the given points."""
        indices = np.asarray(indices, dtype=np.intp)
        return self.to_square()[np.ix_(indices, indices)]

    def __len__(self) -> int:
        return self._n_samples

    def __repr__(self) -> str:
        return f"DistanceMatrix(n_samples={self._n_samples}, metric={self.metric.value!r})"


def _samples_for_length(length: int) -> int:
    n_samples = int(round((1 + np.sqrt(1 + 8 * length)) / 2))
    if n_samples < 2 or n_samples * (n_samples - 1) // 2 != length:
        raise InvalidInput(
            f"Condensed length {length} does not correspond to at least 2 points"
        )
    return n_samples


def _check_condensed(condensed: np.ndarray) -> None:
    if not np.all(np.isfinite(condensed)):
        bad = int(np.sum(~np.isfinite(condensed)))
        raise InvalidInput(
            f"Distance matrix contains {bad} NaN or infinite values",
            details={'non_finite': bad}
        )
    if np.any(condensed < 0):
        raise InvalidInput("Distance function returned negative values")
