"""
htneuron - Hill-Tononi point neuron driven by a typed, delay-annotated event protocol.

Entities exchange frozen Event values (spikes, currents, conductances, rates,
data logging requests and replies). Events are summed per arrival step into
delay accumulators and folded into an adaptive-step integration of the
neuron's ODE system once per fixed simulation tick.

Quick Start:
============
    from htneuron import GlobalConfig, HTNeuron, Multimeter, Network, SpikeGenerator

    net = Network(GlobalConfig(dt_ms=0.1))
    gen = net.add(SpikeGenerator(spike_times_ms=[1.0, 5.0]))
    neuron = net.add(HTNeuron())
    mm = net.add(Multimeter(record_from=("V_m", "g_AMPA"), interval_ms=0.1))

    net.connect(gen, neuron, receptor_type=neuron.receptor_types["AMPA"], weight=5.0)
    net.connect(mm, neuron)
    net.simulate(200)

    v_m = mm.events["V_m"]
"""

__version__ = "0.1.0"

from htneuron.core import (
    ConfigurationError,
    EntityRegistry,
    HTNeuronError,
    IllegalConnectionError,
    Node,
    NumericalDivergenceError,
    ProtocolViolationError,
    UnknownReceptorError,
)
from htneuron.config import GlobalConfig, HTNeuronConfig, SolverConfig
from htneuron.events import Event, EventKind
from htneuron.core.network import Connection, Network
from htneuron.components.neurons import HTNeuron, StateIndex
from htneuron.devices import DCGenerator, Multimeter, SpikeGenerator, SpikeRecorder

__all__ = [
    "__version__",
    # Errors
    "HTNeuronError",
    "ConfigurationError",
    "UnknownReceptorError",
    "IllegalConnectionError",
    "ProtocolViolationError",
    "NumericalDivergenceError",
    # Configuration
    "GlobalConfig",
    "SolverConfig",
    "HTNeuronConfig",
    # Kernel
    "EntityRegistry",
    "Node",
    "Network",
    "Connection",
    # Events
    "Event",
    "EventKind",
    # Models and devices
    "HTNeuron",
    "StateIndex",
    "SpikeGenerator",
    "DCGenerator",
    "Multimeter",
    "SpikeRecorder",
]
