"""Hierarchical clustering implementation."""

from typing import Any, Dict, List, Optional

import numpy as np

from ..config.constants import LINKAGE_AVERAGE, LINKAGE_DIVISIVE, METRIC_EUCLIDEAN
from ..config.settings import HierarchicalSettings
from ..core.dendrogram import Dendrogram
from ..core.distance import DistanceMatrix, MetricSpec
from ..core.features import as_feature_matrix
from ..exceptions import InvalidInput
from ..utils.logging import get_logger
from .base import Clusterer
from .divisive import DivisiveEngine
from .linkage import LinkageEngine, resolve_linkage
from .metrics import Silhouette

logger = get_logger(__name__)


class HierarchicalClusterer(Clusterer):
    """Hierarchical (agglomerative or divisive) clustering algorithm."""

    def __init__(self,
                 n_clusters: Optional[int] = None,
                 linkage: str = LINKAGE_AVERAGE,
                 metric: MetricSpec = METRIC_EUCLIDEAN,
                 distance_threshold: Optional[float] = None,
                 min_clusters: int = 2,
                 max_clusters: int = 10):
        """
        Initialize Hierarchical clusterer.

        Args:
            n_clusters: Number of clusters (None if using distance_threshold)
            linkage: single, complete, average, centroid or divisive
            metric: Metric for distance computation
            distance_threshold: Height at which to cut the dendrogram
            min_clusters: Minimum clusters for auto-selection
            max_clusters: Maximum clusters for auto-selection
        """
        if n_clusters is not None and distance_threshold is not None:
            raise InvalidInput("Set either n_clusters or distance_threshold, not both")
        if linkage != LINKAGE_DIVISIVE:
            resolve_linkage(linkage)

        self.n_clusters = n_clusters
        self.linkage = linkage
        self.metric = metric
        self.distance_threshold = distance_threshold
        self.min_clusters = min_clusters
        self.max_clusters = max_clusters

        self.n_clusters_: Optional[int] = None
        self.silhouette_score_: Optional[float] = None
        self.dendrogram_: Optional[Dendrogram] = None

    def cluster(self,
                vectors: np.ndarray,
                **kwargs) -> Dict[int, List[int]]:
        """
        Perform hierarchical clustering.

        Args:
            vectors: Feature matrix (n_samples, n_features)
            **kwargs: Additional parameters

        Returns:
            Dict mapping cluster IDs to lists of sample indices
        """
        features = as_feature_matrix(vectors)
        n_samples = features.n_samples

        distances = DistanceMatrix.build(features, metric=self.metric)
        self.dendrogram_ = self.build_dendrogram(distances)

        if self.distance_threshold is not None:
            partition = self.dendrogram_.cut_by_height(self.distance_threshold)
        else:
            n_clusters = self.n_clusters or self._find_optimal_clusters(features)
            partition = self.dendrogram_.cut_by_count(n_clusters)

        # Store number of clusters found
        self.n_clusters_ = partition.n_clusters

        # Calculate silhouette score if possible
        if 1 < self.n_clusters_ < n_samples:
            self.silhouette_score_ = Silhouette.compute(partition, distances).average_width()

        return self.prepare_clusters(partition)

    def build_dendrogram(self, distances: DistanceMatrix) -> Dendrogram:
        """Run the configured engine over a distance matrix."""
        if self.linkage == LINKAGE_DIVISIVE:
            return DivisiveEngine().run(distances)
        return LinkageEngine(self.linkage).run(distances)

    def _find_optimal_clusters(self, features) -> int:
        """
        Find optimal number of clusters using silhouette analysis.

        Args:
            features: Feature matrix

        Returns:
            Optimal number of clusters
        """
        from .selection import ClusterCountSelector

        n_samples = features.n_samples
        max_clusters = min(self.max_clusters, n_samples - 1)
        min_clusters = max(2, self.min_clusters)

        if max_clusters < min_clusters:
            return min(min_clusters, n_samples)

        selector = ClusterCountSelector(
            method='hierarchical',
            hierarchical=HierarchicalSettings(linkage=self.linkage, metric=self.metric)
        )
        curve = selector.silhouette(features, (min_clusters, max_clusters))
        return curve.suggested_k

    def get_dendrogram_data(self) -> Dict[str, Any]:
        """
        Get dendrogram data for visualization.

        Returns:
            Dendrogram data dictionary
        """
        if self.dendrogram_ is None:
            raise InvalidInput("No dendrogram yet; call cluster() first")

        return {
            'linkage_matrix': self.dendrogram_.to_linkage_matrix(),
            'heights': self.dendrogram_.heights(),
            'method': self.dendrogram_.method,
            'inversions': self.dendrogram_.inversions()
        }

    def get_params(self) -> Dict[str, Any]:
        """Get clustering parameters."""
        return {
            'algorithm': 'hierarchical',
            'n_clusters': self.n_clusters_,
            'linkage': self.linkage,
            'metric': self.metric if isinstance(self.metric, str) else 'custom',
            'distance_threshold': self.distance_threshold,
            'silhouette_score': self.silhouette_score_
        }
