"""Core data structures: features, distances, partitions and merge trees."""

from .features import FeatureMatrix
from .distance import Metric, DistanceMatrix
from .partition import Partition
from .dendrogram import MergeStep, Dendrogram

__all__ = [
    'FeatureMatrix',
    'Metric',
    'DistanceMatrix',
    'Partition',
    'MergeStep',
    'Dendrogram'
]
