"""Neuron models."""

from htneuron.components.neurons.ht_neuron import (
    RECEPTOR_TYPES,
    STATE_NAMES,
    DynamicsContext,
    HTNeuron,
    HTState,
    StateIndex,
    ht_neuron_dynamics,
    initial_state,
    synaptic_currents,
)
from htneuron.components.neurons.intrinsic_currents import IntrinsicCurrents

__all__ = [
    "HTNeuron",
    "HTState",
    "StateIndex",
    "DynamicsContext",
    "RECEPTOR_TYPES",
    "STATE_NAMES",
    "ht_neuron_dynamics",
    "initial_state",
    "synaptic_currents",
    "IntrinsicCurrents",
]
