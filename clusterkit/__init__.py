"""Hierarchical and centroid clustering with cluster-count selection."""

from .exceptions import ClusteringError, InvalidInput, SelectionCancelled
from .core import (
    FeatureMatrix,
    Metric,
    DistanceMatrix,
    Partition,
    MergeStep,
    Dendrogram
)
from .clustering import (
    Linkage,
    LinkageEngine,
    DivisiveEngine,
    KMeans,
    KMeansResult,
    ConvergenceStatus,
    SilhouetteRecord,
    Silhouette,
    within_cluster_ss,
    ClusterCountSelector,
    SelectionCurve
)
from .config import ClusteringConfig

__version__ = "1.0.0"

__all__ = [
    'ClusteringError',
    'InvalidInput',
    'SelectionCancelled',
    'FeatureMatrix',
    'Metric',
    'DistanceMatrix',
    'Partition',
    'MergeStep',
    'Dendrogram',
    'Linkage',
    'LinkageEngine',
    'DivisiveEngine',
    'KMeans',
    'KMeansResult',
    'ConvergenceStatus',
    'SilhouetteRecord',
    'Silhouette',
    'within_cluster_ss',
    'ClusterCountSelector',
    'SelectionCurve',
    'ClusteringConfig'
]
