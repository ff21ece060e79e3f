"""Exception hierarchy for clustering operations."""

from typing import Any, Dict, Optional


class ClusteringError(Exception):
    """Base exception for all clusterkit errors."""

    def __init__(self,
                 message: str,
                 error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and reports."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details
        }


class InvalidInput(ClusteringError, ValueError):
    """
    Malformed matrix, out-of-range cluster count or mismatched dimensions.

    Always raised to the caller; inputs are never silently corrected.
    """
    pass


class SelectionCancelled(ClusteringError):
    """A cluster-count sweep was cancelled before every k completed."""

    def __init__(self, message: str, completed_ks=None):
        super().__init__(message, details={'completed_ks': list(completed_ks or [])})
        self.completed_ks = list(completed_ks or [])
