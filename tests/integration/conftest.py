"""
Pytest configuration and fixtures for integration tests.

Integration tests run complete networks: generators → neurons → recorders.
"""

import pytest

from htneuron import GlobalConfig, Network


@pytest.fixture
def fine_network():
    """Network with 0.1 ms ticks and unit minimum delay."""
    return Network(GlobalConfig(dt_ms=0.1, min_delay_steps=1, max_delay_steps=50))


@pytest.fixture
def sliced_network():
    """Network whose slices span several ticks."""
    return Network(GlobalConfig(dt_ms=0.1, min_delay_steps=5, max_delay_steps=50))
