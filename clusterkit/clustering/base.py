"""Base interface for clustering algorithms."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Union

import numpy as np

from ..core.partition import Partition


class Clusterer(ABC):
    """Abstract base class for clustering algorithms."""

    @abstractmethod
    def cluster(self,
                vectors: np.ndarray,
                **kwargs) -> Dict[int, List[int]]:
        """
        Perform clustering on feature vectors.

        Args:
            vectors: Feature matrix (n_samples, n_features)
            **kwargs: Algorithm-specific parameters

        Returns:
            Dict mapping cluster IDs to lists of sample indices
        """
        pass

    @abstractmethod
    def get_params(self) -> Dict[str, Any]:
        """Get clustering parameters."""
        pass

    def prepare_clusters(self,
                         labels: Union[np.ndarray, Partition]) -> Dict[int, List[int]]:
        """
        Convert cluster labels to dictionary format.

        Raw labels are renumbered by first appearance.

        Args:
            labels: Array of cluster labels, or a Partition

        Returns:
            Dict mapping cluster IDs to lists of sample indices
        """
        if not isinstance(labels, Partition):
            labels = Partition.from_labels(labels)
        return labels.clusters()
