"""Factory functions for creating clustering components."""

from .clustering import (
    Clusterer,
    KMeansClusterer,
    HierarchicalClusterer
)

from .config import (
    ALGORITHM_KMEANS,
    ALGORITHM_HIERARCHICAL
)


# Registry of available components
CLUSTERERS = {
    ALGORITHM_KMEANS: KMeansClusterer,
    ALGORITHM_HIERARCHICAL: HierarchicalClusterer
}


def get_clusterer(name: str, **kwargs) -> Clusterer:
    """
    Create clustering algorithm instance.

    Args:
        name: Algorithm name
        **kwargs: Algorithm-specific parameters

    Returns:
        Clusterer instance

    Raises:
        ValueError: If algorithm name is not recognized
    """
    if name not in CLUSTERERS:
        raise ValueError(
            f"Unknown clustering algorithm: {name}. "
            f"Available: {list(CLUSTERERS.keys())}"
        )

    return CLUSTERERS[name](**kwargs)


def register_clusterer(name: str, clusterer_class: type) -> None:
    """Register new clustering algorithm."""
    if not issubclass(clusterer_class, Clusterer):
        raise TypeError(f"{clusterer_class} must inherit from Clusterer")
    CLUSTERERS[name] = clusterer_class
