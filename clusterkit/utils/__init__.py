"""Utility modules for clusterkit."""

from .logging import get_logger, set_level
from .validation import validate_cluster_count, validate_same_size

__all__ = [
    'get_logger',
    'set_level',
    'validate_cluster_count',
    'validate_same_size'
]
