"""Shared test fixtures and configuration."""

import numpy as np
import pytest
import torch

from htneuron import GlobalConfig, HTNeuron, HTNeuronConfig, Network


@pytest.fixture(autouse=True)
def set_random_seed():
    """Ensure reproducible tests by setting all random seeds.

    This fixture runs automatically for every test to ensure deterministic behavior.
    """
    torch.manual_seed(42)
    np.random.seed(42)


@pytest.fixture
def global_config():
    """Tick of 0.1 ms, unit minimum delay."""
    return GlobalConfig(dt_ms=0.1, min_delay_steps=1, max_delay_steps=20)


@pytest.fixture
def neuron_config():
    """Default Hill-Tononi parameters."""
    return HTNeuronConfig()


@pytest.fixture
def neuron(neuron_config, global_config):
    """Stand-alone neuron, not part of any network."""
    return HTNeuron(neuron_config, global_config)


@pytest.fixture
def network(global_config):
    """Empty network."""
    return Network(global_config)
