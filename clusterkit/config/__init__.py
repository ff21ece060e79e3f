"""Configuration module for clusterkit."""

from .settings import (
    KMeansSettings,
    HierarchicalSettings,
    SelectionSettings,
    ClusteringConfig
)

from .constants import (
    # Algorithms
    ALGORITHM_KMEANS,
    ALGORITHM_HIERARCHICAL,
    SUPPORTED_ALGORITHMS,
    # Linkages
    LINKAGE_SINGLE,
    LINKAGE_COMPLETE,
    LINKAGE_AVERAGE,
    LINKAGE_CENTROID,
    LINKAGE_DIVISIVE,
    SUPPORTED_LINKAGES,
    MONOTONIC_LINKAGES,
    # Metrics
    METRIC_EUCLIDEAN,
    METRIC_MANHATTAN,
    METRIC_CUSTOM,
    SUPPORTED_METRICS,
    # Initialization
    INIT_RANDOM,
    INIT_EXPLICIT,
    # Criteria
    CRITERION_ELBOW,
    CRITERION_HARTIGAN,
    CRITERION_SILHOUETTE,
    SUPPORTED_CRITERIA,
    # Other constants
    DEFAULT_RANDOM_STATE,
    DEFAULT_N_JOBS,
    DEFAULT_MAX_ITER,
    DEFAULT_TOL,
    DEFAULT_K_RANGE
)

__all__ = [
    # Settings
    'KMeansSettings',
    'HierarchicalSettings',
    'SelectionSettings',
    'ClusteringConfig',
    # Constants
    'ALGORITHM_KMEANS',
    'ALGORITHM_HIERARCHICAL',
    'SUPPORTED_ALGORITHMS',
    'LINKAGE_SINGLE',
    'LINKAGE_COMPLETE',
    'LINKAGE_AVERAGE',
    'LINKAGE_CENTROID',
    'LINKAGE_DIVISIVE',
    'SUPPORTED_LINKAGES',
    'MONOTONIC_LINKAGES',
    'METRIC_EUCLIDEAN',
    'METRIC_MANHATTAN',
    'METRIC_CUSTOM',
    'SUPPORTED_METRICS',
    'INIT_RANDOM',
    'INIT_EXPLICIT',
    'CRITERION_ELBOW',
    'CRITERION_HARTIGAN',
    'CRITERION_SILHOUETTE',
    'SUPPORTED_CRITERIA',
    'DEFAULT_RANDOM_STATE',
    'DEFAULT_N_JOBS',
    'DEFAULT_MAX_ITER',
    'DEFAULT_TOL',
    'DEFAULT_K_RANGE'
]
