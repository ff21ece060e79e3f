"""Cluster-count selection curves: elbow, Hartigan index and average silhouette."""

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from ..config.constants import (
    ALGORITHM_HIERARCHICAL,
    ALGORITHM_KMEANS,
    CRITERION_ELBOW,
    CRITERION_HARTIGAN,
    CRITERION_SILHOUETTE,
    DEFAULT_K_RANGE,
    DEFAULT_N_JOBS,
    INIT_RANDOM,
    LINKAGE_DIVISIVE,
    METRIC_EUCLIDEAN,
    SUPPORTED_ALGORITHMS,
    SUPPORTED_CRITERIA,
)
from ..config.settings import ClusteringConfig, HierarchicalSettings, KMeansSettings
from ..core.dendrogram import Dendrogram
from ..core.distance import DistanceMatrix
from ..core.features import FeatureMatrix, as_feature_matrix
from ..core.partition import Partition
from ..exceptions import InvalidInput, SelectionCancelled
from ..utils.logging import get_logger
from .divisive import DivisiveEngine
from .kmeans import KMeans
from .linkage import LinkageEngine
from .metrics import Silhouette, within_cluster_ss

logger = get_logger(__name__)

KRange = Union[Tuple[int, int], Iterable[int]]

# Hartigan (1975): keep adding clusters while H(k) exceeds this
HARTIGAN_THRESHOLD = 10.0


@dataclass
class SelectionCurve:
    """(k, score) pairs produced by one selection criterion."""
    criterion: str
    method: str
    scores: List[Tuple[int, Optional[float]]] = field(default_factory=list)
    suggested_k: Optional[int] = None
    undefined: List[int] = field(default_factory=list)
    cancelled: bool = False

    def ks(self) -> List[int]:
        return [k for k, _ in self.scores]

    def values(self) -> np.ndarray:
        """Scores as floats, NaN where undefined."""
        return np.array(
            [np.nan if score is None else score for _, score in self.scores],
            dtype=np.float64
        )

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise SelectionCancelled(
                f"{self.criterion} sweep was cancelled after {len(self.scores)} values",
                completed_ks=self.ks()
            )

    def as_dict(self) -> Dict[str, Any]:
        return {
            'criterion': self.criterion,
            'method': self.method,
            'scores': [[k, score] for k, score in self.scores],
            'suggested_k': self.suggested_k,
            'undefined': list(self.undefined),
            'cancelled': self.cancelled
        }


class ClusterCountSelector:
    """
    Runs a partitioner across candidate cluster counts and scores each.

    With method='kmeans' every k gets its own K-Means run (same seed); with
    method='hierarchical' one dendrogram is built and cut at every k. Each k
    is evaluated independently, so n_jobs != 1 spreads them over threads.

    A cancel_event, when set, stops the sweep before the next k starts;
    only completed values are reported and the curve is marked cancelled.
    """

    def __init__(self,
                 method: str = ALGORITHM_KMEANS,
                 kmeans: Optional[KMeansSettings] = None,
                 hierarchical: Optional[HierarchicalSettings] = None,
                 n_jobs: int = DEFAULT_N_JOBS,
                 cancel_event: Optional[threading.Event] = None,
                 k_range: KRange = DEFAULT_K_RANGE):
        """
        Initialize selector.

        Args:
            method: 'kmeans' or 'hierarchical'
            kmeans: K-Means settings (init must be 'random')
            hierarchical: Linkage and metric for hierarchical runs
            n_jobs: Parallel workers over k values (-1 for all cores)
            cancel_event: Cooperative cancellation flag
            k_range: Candidate k values used when a sweep is given none
        """
        if method not in SUPPORTED_ALGORITHMS:
            raise InvalidInput(
                f"Unknown selection method: {method}. Available: {SUPPORTED_ALGORITHMS}"
            )
        self.method = method
        self.kmeans = kmeans or KMeansSettings()
        self.hierarchical = hierarchical or HierarchicalSettings()
        self.n_jobs = n_jobs
        self.cancel_event = cancel_event
        self.k_range = k_range if isinstance(k_range, tuple) else list(k_range)

        if method == ALGORITHM_KMEANS and not (
                isinstance(self.kmeans.init, str) and self.kmeans.init == INIT_RANDOM):
            raise InvalidInput("Cluster-count sweeps need random K-Means initialization")

    @classmethod
    def from_config(cls,
                    config: ClusteringConfig,
                    cancel_event: Optional[threading.Event] = None) -> 'ClusterCountSelector':
        """Create a selector from a validated configuration."""
        config.validate()
        return cls(
            method=ALGORITHM_HIERARCHICAL if config.uses_hierarchical else ALGORITHM_KMEANS,
            kmeans=config.kmeans,
            hierarchical=config.hierarchical,
            n_jobs=config.selection.n_jobs,
            cancel_event=cancel_event,
            k_range=(config.selection.k_min, config.selection.k_max)
        )

    def evaluate(self, criterion: str, matrix: Any, k_range: Optional[KRange] = None) -> SelectionCurve:
        """Compute the curve for a criterion given by name."""
        if criterion not in SUPPORTED_CRITERIA:
            raise InvalidInput(
                f"Unknown criterion: {criterion}. Available: {SUPPORTED_CRITERIA}"
            )
        return getattr(self, criterion)(matrix, k_range)

    def elbow(self, matrix: Any, k_range: Optional[KRange] = None) -> SelectionCurve:
        """
        Within-cluster sum of squares for each k.

        The curve is returned as-is; no k is suggested.

        Args:
            matrix: FeatureMatrix or 2D array-like
            k_range: (k_min, k_max) inclusive, or an iterable of k values;
                defaults to the selector's k_range

        Returns:
            SelectionCurve of (k, WSS)
        """
        features = as_feature_matrix(matrix)
        ks = self._candidate_ks(k_range, features.n_samples)
        partition_for = self._partitioner(features)

        values, cancelled = self._sweep(ks, lambda k: partition_for(k)[1])

        curve = SelectionCurve(CRITERION_ELBOW, self.method, cancelled=cancelled)
        curve.scores = [(k, values[k]) for k in ks if k in values]
        return self._finish(curve)

    def hartigan(self,
                 matrix: Any,
                 k_range: Optional[KRange] = None,
                 threshold: float = HARTIGAN_THRESHOLD) -> SelectionCurve:
        """
        Hartigan index H(k) = (WSS(k) / WSS(k+1) - 1) * (n - k - 1).

        WSS is also computed at k_max + 1. Where WSS(k+1) is 0 the index is
        undefined: the score is None and k is listed in `undefined`.

        Args:
            matrix: FeatureMatrix or 2D array-like
            k_range: (k_min, k_max) inclusive, or an iterable of k values (k <= n - 1);
                defaults to the selector's k_range
            threshold: Suggest the smallest k with H(k) <= threshold

        Returns:
            SelectionCurve of (k, H(k))
        """
        features = as_feature_matrix(matrix)
        n = features.n_samples
        ks = self._candidate_ks(k_range, n, upper=n - 1)
        needed = sorted(set(ks) | {k + 1 for k in ks})
        partition_for = self._partitioner(features)
        n_distinct = len(np.unique(features.values, axis=0))

        def wss_at(k: int) -> float:
            # K-Means cannot seed more clusters than distinct rows; any such
            # count separates every distinct row, so WSS is 0
            if self.method == ALGORITHM_KMEANS and k > n_distinct:
                return 0.0
            return partition_for(k)[1]

        wss, cancelled = self._sweep(needed, wss_at)

        curve = SelectionCurve(CRITERION_HARTIGAN, self.method, cancelled=cancelled)
        for k in ks:
            if k not in wss or k + 1 not in wss:
                continue
            if wss[k + 1] == 0:
                logger.warning(f"Hartigan index undefined at k={k}: WSS(k+1) is 0")
                curve.scores.append((k, None))
                curve.undefined.append(k)
                continue
            curve.scores.append((k, (wss[k] / wss[k + 1] - 1.0) * (n - k - 1)))

        for k, score in curve.scores:
            if score is not None and score <= threshold:
                curve.suggested_k = k
                break
        return self._finish(curve)

    def silhouette(self, matrix: Any, k_range: Optional[KRange] = None) -> SelectionCurve:
        """
        Average silhouette width for each k.

        k = 1 has no silhouette and is reported as undefined. The suggested k
        maximises the average width (smallest k on ties); callers should still
        inspect the whole curve.

        Args:
            matrix: FeatureMatrix or 2D array-like
            k_range: (k_min, k_max) inclusive, or an iterable of k values;
                defaults to the selector's k_range

        Returns:
            SelectionCurve of (k, average silhouette width)
        """
        features = as_feature_matrix(matrix)
        ks = self._candidate_ks(k_range, features.n_samples)
        partition_for = self._partitioner(features)
        distances = self._distances(features)

        def score(k: int) -> Optional[float]:
            if k == 1:
                return None
            partition, _ = partition_for(k)
            return Silhouette.compute(partition, distances).average_width()

        values, cancelled = self._sweep(ks, score)

        curve = SelectionCurve(CRITERION_SILHOUETTE, self.method, cancelled=cancelled)
        curve.scores = [(k, values[k]) for k in ks if k in values]
        curve.undefined = [k for k, value in curve.scores if value is None]

        defined = [(k, value) for k, value in curve.scores if value is not None]
        if defined:
            curve.suggested_k = max(defined, key=lambda item: (item[1], -item[0]))[0]
        return self._finish(curve)

    def _partitioner(self, features: FeatureMatrix) -> Callable[[int], Tuple[Partition, float]]:
        """Return k -> (partition, WSS) for the configured method."""
        if self.method == ALGORITHM_KMEANS:
            settings = self.kmeans

            def run_kmeans(k: int) -> Tuple[Partition, float]:
                result = KMeans(
                    n_clusters=k,
                    init=INIT_RANDOM,
                    max_iter=settings.max_iter,
                    tol=settings.tol,
                    random_state=settings.random_state
                ).run(features)
                return result.partition, result.total_within_ss

            return run_kmeans

        dendrogram = self.build_dendrogram(features)

        def cut(k: int) -> Tuple[Partition, float]:
            partition = dendrogram.cut_by_count(k)
            return partition, within_cluster_ss(features, partition)

        return cut

    def build_dendrogram(self, matrix: Any) -> Dendrogram:
        """Merge tree for the configured hierarchical settings."""
        distances = self._distances(as_feature_matrix(matrix))
        if self.hierarchical.linkage == LINKAGE_DIVISIVE:
            return DivisiveEngine().run(distances)
        return LinkageEngine(self.hierarchical.linkage).run(distances)

    def _distances(self, features: FeatureMatrix) -> DistanceMatrix:
        metric = METRIC_EUCLIDEAN
        if self.method == ALGORITHM_HIERARCHICAL:
            metric = self.hierarchical.metric
        return DistanceMatrix.build(features, metric=metric, n_jobs=self.n_jobs)

    def _candidate_ks(self, k_range: Optional[KRange], n: int, upper: Optional[int] = None) -> List[int]:
        upper = n if upper is None else upper
        if k_range is None:
            k_range = self.k_range

        if isinstance(k_range, tuple) and len(k_range) == 2:
            k_min, k_max = k_range
            if not all(isinstance(k, (int, np.integer)) for k in (k_min, k_max)):
                raise InvalidInput(f"k range bounds must be integers, got {k_range}")
            if k_min > k_max:
                raise InvalidInput(f"Empty k range: {k_range}")
            ks = list(range(int(k_min), int(k_max) + 1))
        else:
            ks = list(k_range)
            if not all(isinstance(k, (int, np.integer)) for k in ks):
                raise InvalidInput(f"k values must be integers, got {ks}")
            ks = sorted({int(k) for k in ks})

        if not ks:
            raise InvalidInput("No candidate k values given")
        if ks[0] < 1 or ks[-1] > upper:
            raise InvalidInput(f"Candidate k values must lie in [1, {upper}], got {ks[0]}..{ks[-1]}")
        return ks

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _sweep(self, ks: List[int], evaluate: Callable[[int], Any]) -> Tuple[Dict[int, Any], bool]:
        """
        Evaluate each k, publishing a value only once its run completes.

        Returns:
            Tuple of (values by k, whether the sweep was cancelled)
        """
        logger.info(f"Sweeping {len(ks)} k values ({ks[0]}..{ks[-1]}) with {self.method}")

        def task(k: int) -> Tuple[int, Any, bool]:
            if self._cancelled():
                return k, None, False
            return k, evaluate(k), True

        values: Dict[int, Any] = {}
        if self.n_jobs == 1:
            for k in ks:
                if self._cancelled():
                    break
                values[k] = evaluate(k)
        else:
            outputs = Parallel(n_jobs=self.n_jobs, prefer="threads")(
                delayed(task)(k) for k in ks
            )
            for k, value, done in outputs:
                if done:
                    values[k] = value

        cancelled = len(values) < len(ks)
        if cancelled:
            logger.warning(f"Sweep cancelled after {len(values)} of {len(ks)} k values")
        return values, cancelled

    def _finish(self, curve: SelectionCurve) -> SelectionCurve:
        logger.info(
            f"{curve.criterion} curve: {len(curve.scores)} values"
            + (f", suggested k={curve.suggested_k}" if curve.suggested_k is not None else "")
        )
        return curve
