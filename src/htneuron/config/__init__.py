"""
Configuration for htneuron.

- GlobalConfig: tick duration, delay window, accumulator device/dtype
- SolverConfig: adaptive ODE solver settings
- HTNeuronConfig: the Hill-Tononi parameter record
- ValidatedConfig / ConfigValidationError: declarative validation
"""

from htneuron.config.base import BaseConfig
from htneuron.config.global_config import GlobalConfig, SolverConfig
from htneuron.config.neuron_config import SYNAPSE_NAMES, HTNeuronConfig
from htneuron.config.validation import (
    ConfigValidationError,
    ValidatedConfig,
    ValidatorRegistry,
)

__all__ = [
    "BaseConfig",
    "GlobalConfig",
    "SolverConfig",
    "HTNeuronConfig",
    "SYNAPSE_NAMES",
    "ConfigValidationError",
    "ValidatedConfig",
    "ValidatorRegistry",
]
