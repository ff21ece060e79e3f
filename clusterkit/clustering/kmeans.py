"""K-Means clustering (Lloyd's algorithm)."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from scipy.spatial.distance import cdist

from ..config.constants import (
    DEFAULT_MAX_ITER,
    DEFAULT_RANDOM_STATE,
    DEFAULT_TOL,
    INIT_RANDOM,
)
from ..config.settings import KMeansSettings
from ..core.distance import DistanceMatrix
from ..core.features import as_feature_matrix
from ..core.partition import Partition
from ..exceptions import InvalidInput
from ..utils.logging import get_logger
from ..utils.validation import validate_cluster_count
from .base import Clusterer
from .metrics import Silhouette

logger = get_logger(__name__)


class ConvergenceStatus(Enum):
    """Outcome of a K-Means run."""
    CONVERGED = "converged"
    DID_NOT_CONVERGE = "did_not_converge"


@dataclass(frozen=True)
class KMeansResult:
    """Partition, centroids and diagnostics of one K-Means run."""
    partition: Partition
    centroids: np.ndarray
    total_within_ss: float
    n_iter: int
    status: ConvergenceStatus
    wss_history: Tuple[float, ...]
    n_reseeded: int = 0

    @property
    def converged(self) -> bool:
        return self.status is ConvergenceStatus.CONVERGED

    @property
    def labels(self) -> np.ndarray:
        return self.partition.labels


class KMeans:
    """
    Lloyd's K-Means with explicit seeding.

    Each iteration assigns every point to its nearest centroid by squared
    Euclidean distance (ties to the lowest cluster id), reseeds empty
    clusters, and moves each centroid to the mean of its points.

    Empty clusters take the point currently farthest from its own centroid,
    chosen among points whose cluster keeps at least one other member (ties to
    the lowest point index). Each reseed is logged as a warning.
    """

    def __init__(self,
                 n_clusters: Optional[int] = None,
                 init: Any = INIT_RANDOM,
                 max_iter: int = DEFAULT_MAX_ITER,
                 tol: float = DEFAULT_TOL,
                 random_state: Optional[int] = DEFAULT_RANDOM_STATE):
        """
        Initialize K-Means.

        Args:
            n_clusters: Number of clusters; may be omitted with explicit init
            init: 'random' for k distinct rows drawn with random_state, or a
                (k, n_features) array of starting centroids
            max_iter: Maximum iterations
            tol: Stop once WSS improves by less than this (0 disables)
            random_state: Seed for random initialization
        """
        self.n_clusters = n_clusters
        self.init = init
        self.max_iter = max_iter
        self.tol = tol
        self.random_state = random_state

    def run(self, matrix: Any) -> KMeansResult:
        """
        Partition the points into k clusters.

        Args:
            matrix: FeatureMatrix or 2D array-like (n_samples, n_features)

        Returns:
            KMeansResult; status is DID_NOT_CONVERGE when max_iter was reached,
            in which case the best partition seen is returned

        Raises:
            InvalidInput: If k is out of range, settings are invalid, or random
                init cannot find k distinct rows
        """
        features = as_feature_matrix(matrix)
        X = features.values
        n = features.n_samples

        if self.max_iter < 1:
            raise InvalidInput(f"max_iter must be >= 1, got {self.max_iter}")
        if self.tol < 0:
            raise InvalidInput(f"tol must be >= 0, got {self.tol}")

        centroids = self._initial_centroids(X)
        k = len(centroids)

        logger.debug(f"K-Means: {n} points, k={k}, max_iter={self.max_iter}, tol={self.tol}")

        history: List[float] = []
        previous_labels = None
        best = None
        n_reseeded = 0
        status = ConvergenceStatus.DID_NOT_CONVERGE
        iteration = 0

        for iteration in range(1, self.max_iter + 1):
            squared = cdist(X, centroids, metric='sqeuclidean')
            labels = np.argmin(squared, axis=1)

            centroids, reseeded = self._reseed_empty(X, squared, labels, centroids)
            n_reseeded += reseeded

            updated = self._update_centroids(X, labels, k)
            wss = float(np.sum((X - updated[labels]) ** 2))
            history.append(wss)
            logger.debug(f"Iteration {iteration}: WSS={wss:.6g}")

            if best is None or wss <= best[0]:
                best = (wss, labels.copy(), updated.copy())

            unchanged = previous_labels is not None and np.array_equal(labels, previous_labels)
            settled = np.array_equal(updated, centroids)
            small_gain = self.tol > 0 and len(history) > 1 and history[-2] - wss < self.tol

            centroids = updated
            previous_labels = labels

            if unchanged or settled or small_gain:
                status = ConvergenceStatus.CONVERGED
                break

        if status is ConvergenceStatus.DID_NOT_CONVERGE:
            logger.warning(
                f"K-Means did not converge within {self.max_iter} iterations (k={k}); "
                f"returning best partition with WSS={best[0]:.6g}"
            )

        best_wss, best_labels, best_centroids = best
        best_centroids.setflags(write=False)

        return KMeansResult(
            partition=Partition.from_labels(best_labels, relabel=False),
            centroids=best_centroids,
            total_within_ss=best_wss,
            n_iter=iteration,
            status=status,
            wss_history=tuple(history),
            n_reseeded=n_reseeded
        )

    def _initial_centroids(self, X: np.ndarray) -> np.ndarray:
        n, n_features = X.shape

        if isinstance(self.init, str):
            if self.init != INIT_RANDOM:
                raise InvalidInput(f"Unknown init: {self.init}. Use 'random' or an array")
            k = self._checked_k(self.n_clusters, n)
            return self._random_rows(X, k)

        centroids = np.array(self.init, dtype=np.float64)
        if centroids.ndim != 2 or centroids.shape[1] != n_features:
            raise InvalidInput(
                f"Explicit centroids must have shape (k, {n_features}), got {centroids.shape}"
            )
        if not np.all(np.isfinite(centroids)):
            raise InvalidInput("Explicit centroids contain NaN or infinite values")
        if self.n_clusters is not None and self.n_clusters != len(centroids):
            raise InvalidInput(
                f"n_clusters={self.n_clusters} but {len(centroids)} centroids were given"
            )
        self._checked_k(len(centroids), n)
        return centroids

    @staticmethod
    def _checked_k(k: Optional[int], n: int) -> int:
        if k is None:
            raise InvalidInput("n_clusters is required with random init")
        return validate_cluster_count(k, n, name='n_clusters')

    def _random_rows(self, X: np.ndarray, k: int) -> np.ndarray:
        n_unique = len(np.unique(X, axis=0))
        if n_unique < k:
            raise InvalidInput(
                f"Random init needs {k} distinct rows but only {n_unique} exist",
                details={'n_unique': n_unique, 'k': k}
            )

        rng = np.random.default_rng(self.random_state)
        chosen = []
        seen = set()
        for index in rng.permutation(len(X)):
            key = tuple(X[index])
            if key in seen:
                continue
            seen.add(key)
            chosen.append(index)
            if len(chosen) == k:
                break

        return X[chosen].copy()

    @staticmethod
    def _reseed_empty(X: np.ndarray,
                      squared: np.ndarray,
                      labels: np.ndarray,
                      centroids: np.ndarray) -> Tuple[np.ndarray, int]:
        """
        Give each empty cluster the point farthest from its own centroid.

        Updates labels in place; centroids are left untouched.

        Returns:
            Tuple of (centroids with reseeded rows, number of clusters reseeded)
        """
        k = len(centroids)
        counts = np.bincount(labels, minlength=k)
        empty = np.flatnonzero(counts == 0)
        if empty.size == 0:
            return centroids, 0

        centroids = centroids.copy()
        own = squared[np.arange(len(X)), labels].copy()
        for cluster_id in empty:
            counts = np.bincount(labels, minlength=k)
            eligible = counts[labels] > 1
            candidate = int(np.argmax(np.where(eligible, own, -np.inf)))

            logger.warning(
                f"Cluster {cluster_id} became empty; reseeding with point {candidate} "
                f"(squared distance {own[candidate]:.6g} from cluster {labels[candidate]})"
            )
            labels[candidate] = cluster_id
            centroids[cluster_id] = X[candidate]
            own[candidate] = 0.0

        return centroids, len(empty)

    @staticmethod
    def _update_centroids(X: np.ndarray, labels: np.ndarray, k: int) -> np.ndarray:
        sums = np.zeros((k, X.shape[1]))
        np.add.at(sums, labels, X)
        counts = np.bincount(labels, minlength=k)
        return sums / counts[:, None]

    def get_params(self) -> Dict[str, Any]:
        return {
            'n_clusters': self.n_clusters,
            'init': self.init if isinstance(self.init, str) else 'explicit',
            'max_iter': self.max_iter,
            'tol': self.tol,
            'random_state': self.random_state
        }


class KMeansClusterer(Clusterer):
    """K-Means clustering algorithm."""

    def __init__(self,
                 n_clusters: Optional[int] = None,
                 min_clusters: int = 2,
                 max_clusters: int = 10,
                 init: Any = INIT_RANDOM,
                 max_iter: int = DEFAULT_MAX_ITER,
                 tol: float = DEFAULT_TOL,
                 random_state: Optional[int] = DEFAULT_RANDOM_STATE):
        """
        Initialize K-Means clusterer.

        Args:
            n_clusters: Number of clusters (None for auto-selection)
            min_clusters: Minimum clusters for auto-selection
            max_clusters: Maximum clusters for auto-selection
            init: 'random' or explicit starting centroids
            max_iter: Maximum iterations
            tol: Convergence tolerance on WSS improvement
            random_state: Random seed
        """
        self.n_clusters = n_clusters
        self.min_clusters = min_clusters
        self.max_clusters = max_clusters
        self.init = init
        self.max_iter = max_iter
        self.tol = tol
        self.random_state = random_state

        self.optimal_k_: Optional[int] = None
        self.silhouette_score_: Optional[float] = None
        self.inertia_: Optional[float] = None
        self.result_: Optional[KMeansResult] = None

    def cluster(self,
                vectors: np.ndarray,
                **kwargs) -> Dict[int, List[int]]:
        """
        Perform K-Means clustering.

        Args:
            vectors: Feature matrix (n_samples, n_features)
            **kwargs: Additional parameters

        Returns:
            Dict mapping cluster IDs to lists of sample indices
        """
        features = as_feature_matrix(vectors)
        n_samples = features.n_samples

        if self.n_clusters is None:
            k = self._find_optimal_k(features)
        else:
            k = self.n_clusters

        self.optimal_k_ = k

        engine = KMeans(
            n_clusters=k,
            init=self.init,
            max_iter=self.max_iter,
            tol=self.tol,
            random_state=self.random_state
        )
        self.result_ = engine.run(features)
        self.inertia_ = self.result_.total_within_ss

        # Calculate silhouette score if possible
        if 1 < k < n_samples:
            distances = DistanceMatrix.build(features)
            self.silhouette_score_ = Silhouette.compute(
                self.result_.partition, distances
            ).average_width()

        return self.prepare_clusters(self.result_.partition)

    def _find_optimal_k(self, features) -> int:
        """
        Find optimal number of clusters by average silhouette width.

        Args:
            features: Feature matrix

        Returns:
            Optimal number of clusters
        """
        from .selection import ClusterCountSelector

        n_samples = features.n_samples
        n_unique = len(np.unique(features.values, axis=0))

        if n_unique < n_samples:
            logger.warning(f"Found only {n_unique} unique vectors out of {n_samples} samples.")

        min_k = max(2, min(self.min_clusters, n_unique))
        max_k = min(self.max_clusters, n_samples - 1, n_unique)

        if max_k < min_k:
            logger.warning(f"No k range to search, using k={min(min_k, n_samples)}")
            return min(min_k, n_samples)

        selector = ClusterCountSelector(
            method='kmeans',
            kmeans=KMeansSettings(
                init=INIT_RANDOM,
                random_state=self.random_state,
                max_iter=self.max_iter,
                tol=self.tol
            )
        )
        curve = selector.silhouette(features, (min_k, max_k))

        optimal_k = curve.suggested_k
        self.silhouette_score_ = dict(curve.scores)[optimal_k]
        logger.info(f"Found optimal k={optimal_k} with silhouette score={self.silhouette_score_:.3f}")
        return optimal_k

    def get_params(self) -> Dict[str, Any]:
        """Get clustering parameters."""
        return {
            'algorithm': 'kmeans',
            'n_clusters': self.optimal_k_ or self.n_clusters,
            'max_iter': self.max_iter,
            'tol': self.tol,
            'random_state': self.random_state,
            'silhouette_score': self.silhouette_score_,
            'inertia': self.inertia_,
            'converged': self.result_.converged if self.result_ else None
        }
