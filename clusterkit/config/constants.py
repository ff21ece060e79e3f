"""Shared constants for clusterkit."""

# Default parameters
DEFAULT_RANDOM_STATE = 42
DEFAULT_N_JOBS = 1  # -1 uses all available cores
DEFAULT_MAX_ITER = 300
DEFAULT_TOL = 1e-4
DEFAULT_K_RANGE = (1, 10)

# Clustering algorithms
ALGORITHM_KMEANS = 'kmeans'
ALGORITHM_HIERARCHICAL = 'hierarchical'

SUPPORTED_ALGORITHMS = [
    ALGORITHM_KMEANS,
    ALGORITHM_HIERARCHICAL
]

# Linkage rules
LINKAGE_SINGLE = 'single'
LINKAGE_COMPLETE = 'complete'
LINKAGE_AVERAGE = 'average'
LINKAGE_CENTROID = 'centroid'
LINKAGE_DIVISIVE = 'divisive'

SUPPORTED_LINKAGES = [
    LINKAGE_SINGLE,
    LINKAGE_COMPLETE,
    LINKAGE_AVERAGE,
    LINKAGE_CENTROID
]

# Linkage rules that guarantee non-decreasing merge heights
MONOTONIC_LINKAGES = [
    LINKAGE_SINGLE,
    LINKAGE_COMPLETE,
    LINKAGE_AVERAGE
]

# Distance metrics
METRIC_EUCLIDEAN = 'euclidean'
METRIC_MANHATTAN = 'manhattan'
METRIC_CUSTOM = 'custom'

SUPPORTED_METRICS = [
    METRIC_EUCLIDEAN,
    METRIC_MANHATTAN,
    METRIC_CUSTOM
]

# K-Means initialization
INIT_RANDOM = 'random'
INIT_EXPLICIT = 'explicit'

# Cluster count criteria
CRITERION_ELBOW = 'elbow'
CRITERION_HARTIGAN = 'hartigan'
CRITERION_SILHOUETTE = 'silhouette'

SUPPORTED_CRITERIA = [
    CRITERION_ELBOW,
    CRITERION_HARTIGAN,
    CRITERION_SILHOUETTE
]
