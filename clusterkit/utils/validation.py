"""Input validation utilities."""

from typing import Any

import numpy as np

from ..exceptions import InvalidInput


def validate_cluster_count(k: Any, n_samples: int, name: str = 'k') -> int:
    """
    Validate a requested number of clusters.

    Args:
        k: Requested cluster count
        n_samples: Number of points (upper bound)
        name: Parameter name for the error message

    Returns:
        k as a plain int

    Raises:
        InvalidInput: If k is not an integer in [1, n_samples]
    """
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise InvalidInput(f"{name} must be an integer, got {k!r}")
    if not 1 <= k <= n_samples:
        raise InvalidInput(
            f"{name} must be in [1, {n_samples}], got {k}",
            details={name: int(k), 'n_samples': n_samples}
        )
    return int(k)


def validate_same_size(left: int, right: int, what: str) -> None:
    """
    Validate that two collections describe the same points.

    Raises:
        InvalidInput: If the sizes differ
    """
    if left != right:
        raise InvalidInput(f"{what}: {left} points vs {right} points")
