"""Run configuration for clustering and cluster-count selection."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..exceptions import InvalidInput
from .constants import (
    ALGORITHM_HIERARCHICAL,
    ALGORITHM_KMEANS,
    DEFAULT_K_RANGE,
    DEFAULT_MAX_ITER,
    DEFAULT_N_JOBS,
    DEFAULT_RANDOM_STATE,
    DEFAULT_TOL,
    INIT_EXPLICIT,
    INIT_RANDOM,
    LINKAGE_AVERAGE,
    LINKAGE_DIVISIVE,
    METRIC_CUSTOM,
    METRIC_EUCLIDEAN,
    SUPPORTED_ALGORITHMS,
    SUPPORTED_LINKAGES,
    SUPPORTED_METRICS,
)


@dataclass
class KMeansSettings:
    """Settings for K-Means runs."""
    init: Any = INIT_RANDOM  # 'random' or a (k, p) array of starting centroids
    random_state: Optional[int] = DEFAULT_RANDOM_STATE
    max_iter: int = DEFAULT_MAX_ITER
    tol: float = DEFAULT_TOL


@dataclass
class HierarchicalSettings:
    """Settings for hierarchical runs."""
    linkage: str = LINKAGE_AVERAGE  # one of SUPPORTED_LINKAGES or 'divisive'
    metric: Any = METRIC_EUCLIDEAN  # metric name or callable


@dataclass
class SelectionSettings:
    """Settings for cluster-count sweeps."""
    method: str = ALGORITHM_KMEANS
    k_min: int = DEFAULT_K_RANGE[0]
    k_max: int = DEFAULT_K_RANGE[1]
    n_jobs: int = DEFAULT_N_JOBS


@dataclass
class ClusteringConfig:
    """Complete clustering configuration."""
    kmeans: KMeansSettings = field(default_factory=KMeansSettings)
    hierarchical: HierarchicalSettings = field(default_factory=HierarchicalSettings)
    selection: SelectionSettings = field(default_factory=SelectionSettings)

    @classmethod
    def default(cls) -> 'ClusteringConfig':
        """Create default configuration."""
        return cls(
            kmeans=KMeansSettings(),
            hierarchical=HierarchicalSettings(),
            selection=SelectionSettings()
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClusteringConfig':
        """
        Build configuration from a nested dictionary.

        Missing sections and keys fall back to defaults. Unknown keys raise
        InvalidInput.

        Args:
            data: Dict with optional 'kmeans', 'hierarchical' and 'selection' sections

        Returns:
            Validated configuration
        """
        sections = {
            'kmeans': KMeansSettings,
            'hierarchical': HierarchicalSettings,
            'selection': SelectionSettings
        }

        unknown = set(data) - set(sections)
        if unknown:
            raise InvalidInput(f"Unknown configuration sections: {sorted(unknown)}")

        built = {}
        for name, settings_class in sections.items():
            values = data.get(name) or {}
            try:
                built[name] = settings_class(**values)
            except TypeError as e:
                raise InvalidInput(f"Invalid '{name}' configuration: {e}") from e

        config = cls(**built)
        config.validate()
        return config

    def validate(self) -> None:
        """
        Check names and numeric ranges.

        Raises:
            InvalidInput: If any setting is out of range or unknown
        """
        if isinstance(self.kmeans.init, str) and self.kmeans.init != INIT_RANDOM:
            raise InvalidInput(f"Unknown kmeans init: {self.kmeans.init}")
        if self.kmeans.max_iter < 1:
            raise InvalidInput(f"max_iter must be >= 1, got {self.kmeans.max_iter}")
        if self.kmeans.tol < 0:
            raise InvalidInput(f"tol must be >= 0, got {self.kmeans.tol}")

        linkages = SUPPORTED_LINKAGES + [LINKAGE_DIVISIVE]
        if self.hierarchical.linkage not in linkages:
            raise InvalidInput(
                f"Unknown linkage: {self.hierarchical.linkage}. Available: {linkages}"
            )
        metric = self.hierarchical.metric
        if isinstance(metric, str) and metric not in SUPPORTED_METRICS:
            raise InvalidInput(f"Unknown metric: {metric}. Available: {SUPPORTED_METRICS}")
        if metric == METRIC_CUSTOM:
            raise InvalidInput("The custom metric is configured by passing a callable")
        if not isinstance(metric, str) and not callable(metric):
            raise InvalidInput(f"Metric must be a name or a callable, got {metric!r}")

        if self.selection.method not in SUPPORTED_ALGORITHMS:
            raise InvalidInput(
                f"Unknown selection method: {self.selection.method}. "
                f"Available: {SUPPORTED_ALGORITHMS}"
            )
        if not 1 <= self.selection.k_min <= self.selection.k_max:
            raise InvalidInput(
                f"Invalid k range: ({self.selection.k_min}, {self.selection.k_max})"
            )
        if self.selection.n_jobs == 0:
            raise InvalidInput("n_jobs must be non-zero")

    @property
    def uses_hierarchical(self) -> bool:
        return self.selection.method == ALGORITHM_HIERARCHICAL

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        init = self.kmeans.init
        metric = self.hierarchical.metric
        return {
            'kmeans': {
                'init': init if isinstance(init, str) else INIT_EXPLICIT,
                'random_state': self.kmeans.random_state,
                'max_iter': self.kmeans.max_iter,
                'tol': self.kmeans.tol,
            },
            'hierarchical': {
                'linkage': self.hierarchical.linkage,
                'metric': metric if isinstance(metric, str) else METRIC_CUSTOM,
            },
            'selection': {
                'method': self.selection.method,
                'k_min': self.selection.k_min,
                'k_max': self.selection.k_max,
                'n_jobs': self.selection.n_jobs,
            }
        }
