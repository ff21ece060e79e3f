"""Clustering algorithms and utilities."""

from .base import Clusterer
from .linkage import Linkage, LinkageEngine
from .divisive import DivisiveEngine
from .kmeans import KMeans, KMeansResult, ConvergenceStatus, KMeansClusterer
from .hierarchical import HierarchicalClusterer
from .metrics import (
    SilhouetteRecord,
    Silhouette,
    within_cluster_ss,
    evaluate_partition
)
from .selection import ClusterCountSelector, SelectionCurve

__all__ = [
    'Clusterer',
    'Linkage',
    'LinkageEngine',
    'DivisiveEngine',
    'KMeans',
    'KMeansResult',
    'ConvergenceStatus',
    'KMeansClusterer',
    'HierarchicalClusterer',
    'SilhouetteRecord',
    'Silhouette',
    'within_cluster_ss',
    'evaluate_partition',
    'ClusterCountSelector',
    'SelectionCurve'
]
