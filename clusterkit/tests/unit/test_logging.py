"""Unit tests for logging helpers."""

import logging

import pytest

from clusterkit.utils.logging import get_logger, set_level


class TestLogging:
    """Test cases for logger configuration."""

    def test_single_handler(self):
        """Test that repeated calls do not stack handlers."""
        first = get_logger('clusterkit.tests.handlers')
        second = get_logger('clusterkit.tests.handlers', level='DEBUG')

        assert first is second
        assert len(second.handlers) == 1
        assert second.level == logging.DEBUG

    def test_set_level(self):
        """Test adjusting every clusterkit logger at once."""
        logger = get_logger('clusterkit.tests.levels')
        other = logging.getLogger('elsewhere.tests.levels')
        other.setLevel(logging.INFO)

        set_level('ERROR')
        try:
            assert logger.level == logging.ERROR
            assert other.level == logging.INFO
        finally:
            set_level('INFO')


if __name__ == '__main__':
    pytest.main([__file__])
