"""
Core infrastructure: error taxonomy, entity registry and the Node base class.
"""

from htneuron.core.errors import (
    ConfigurationError,
    HTNeuronError,
    IllegalConnectionError,
    NumericalDivergenceError,
    ProtocolViolationError,
    UnknownReceptorError,
)
from htneuron.core.registry import EntityRegistry
from htneuron.core.node import Node

__all__ = [
    "HTNeuronError",
    "ConfigurationError",
    "UnknownReceptorError",
    "IllegalConnectionError",
    "ProtocolViolationError",
    "NumericalDivergenceError",
    "EntityRegistry",
    "Node",
]
