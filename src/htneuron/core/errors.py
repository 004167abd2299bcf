"""
Custom exception classes for htneuron.

This module provides the error taxonomy shared by every component:

Exception Hierarchy:
====================
HTNeuronError (base)
├── ConfigurationError - Invalid parameters, ports or delay horizons
│   ├── UnknownReceptorError - Receptor port outside the accepted range
│   └── IllegalConnectionError - Event kind not accepted by the target
├── ProtocolViolationError - Event invariants broken at delivery time
└── NumericalDivergenceError - ODE solver could not meet its tolerance

Propagation Policy:
===================
- ConfigurationError is raised *before* any state is touched, so callers may
  catch it and keep working with the previous valid configuration.
- ProtocolViolationError and NumericalDivergenceError are programming or
  numerical failures; they surface to the host immediately and must never be
  swallowed (a silently dropped event corrupts causal ordering).

Usage Examples:
===============
    raise UnknownReceptorError(7, "ht_neuron")

    try:
        neuron.set_status({"AMPA_tau_1": 5.0})
    except ConfigurationError as e:
        logger.warning("Rejected update: %s", e)

Author: htneuron developers
"""

from __future__ import annotations

from typing import Optional


# =============================================================================
# Exception Hierarchy
# =============================================================================

class HTNeuronError(Exception):
    """Base exception for all htneuron-specific errors.

    All custom exceptions inherit from this class, enabling code to catch
    simulator errors specifically:

        try:
            network.simulate(1000)
        except HTNeuronError as e:
            logger.error("Simulation error: %s", e)
    """


class ConfigurationError(HTNeuronError):
    """Invalid configuration parameters or connection request.

    Raised when configuration values are out of their valid domain or
    incompatible with each other. Raising this error guarantees that the
    previously valid configuration is left untouched.

    Example:
        raise ConfigurationError("AMPA_tau_1 (2.4) must be < AMPA_tau_2 (0.5)")
    """


class UnknownReceptorError(ConfigurationError):
    """Receptor port not accepted by the receiving model.

    Args:
        receptor_type: The requested receptor port
        model_name: Name of the model rejecting the port

    Example:
        raise UnknownReceptorError(0, "ht_neuron")
    """

    def __init__(self, receptor_type: int, model_name: str):
        super().__init__(f"Receptor type {receptor_type} is not available in {model_name}.")
        self.receptor_type = receptor_type
        self.model_name = model_name


class IllegalConnectionError(ConfigurationError):
    """Target does not accept events of the requested kind.

    Example:
        raise IllegalConnectionError("ht_neuron", "does not handle rate events")
    """

    def __init__(self, model_name: str, message: str):
        super().__init__(f"[{model_name}] {message}")
        self.model_name = model_name


class ProtocolViolationError(HTNeuronError):
    """An event broke a protocol invariant.

    Raised when an event is delivered without resolved sender/receiver, with
    non-positive delay, with a delivery step in the past, or when fields that
    were never set are read. These indicate programming errors and are fatal.

    Example:
        raise ProtocolViolationError("Cannot deliver event with delay 0")
    """


class NumericalDivergenceError(HTNeuronError):
    """The ODE solver failed to meet its error tolerance.

    Fatal for the affected entity: the host stops advancing it.

    Args:
        component_name: Name of the entity whose integration failed
        message: Solver diagnostic
        step: Simulation step at which integration failed (if known)
    """

    def __init__(self, component_name: str, message: str, step: Optional[int] = None):
        where = f" at step {step}" if step is not None else ""
        super().__init__(f"[{component_name}] integration failed{where}: {message}")
        self.component_name = component_name
        self.step = step
