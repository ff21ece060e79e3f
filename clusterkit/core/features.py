"""Validated, read-only feature matrices."""

from typing import Any, Sequence, Tuple

import numpy as np
from sklearn.utils import check_array

from ..exceptions import InvalidInput


class FeatureMatrix:
    """
    n points by p numeric features, immutable once constructed.

    Scaling is the caller's responsibility; the matrix is taken as given.
    """

    def __init__(self, data: Any):
        """
        Validate and freeze feature data.

        Args:
            data: 2D array-like (n_samples, n_features) or another FeatureMatrix

        Raises:
            InvalidInput: If rows have mismatched length, values are missing or
                non-finite, n < 2 or p < 1
        """
        if isinstance(data, FeatureMatrix):
            self._values = data._values
            return

        _check_row_lengths(data)

        try:
            values = check_array(
                data,
                dtype=np.float64,
                ensure_min_samples=2,
                ensure_min_features=1,
                copy=True
            )
        except ValueError as e:
            raise InvalidInput(f"Invalid feature matrix: {e}") from e

        values.setflags(write=False)
        self._values = values

    @property
    def values(self) -> np.ndarray:
        """Read-only (n_samples, n_features) array."""
        return self._values

    @property
    def n_samples(self) -> int:
        return self._values.shape[0]

    @property
    def n_features(self) -> int:
        return self._values.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self._values.shape

    def row(self, index: int) -> np.ndarray:
        return self._values[index]

    def __len__(self) -> int:
        return self.n_samples

    def __repr__(self) -> str:
        return f"FeatureMatrix(n_samples={self.n_samples}, n_features={self.n_features})"


def as_feature_matrix(data: Any) -> FeatureMatrix:
    """Return data as a FeatureMatrix, wrapping it if needed."""
    if isinstance(data, FeatureMatrix):
        return data
    return FeatureMatrix(data)


def _check_row_lengths(data: Any) -> None:
    # Ragged nested sequences would otherwise surface as an opaque numpy error
    if isinstance(data, np.ndarray) or not isinstance(data, Sequence):
        return

    expected = None
    for index, row in enumerate(data):
        if not isinstance(row, (Sequence, np.ndarray)) or isinstance(row, str):
            continue
        if expected is None:
            expected = len(row)
        elif len(row) != expected:
            raise InvalidInput(
                f"Row {index} has {len(row)} values; expected {expected}",
                details={'row': index}
            )
